"""
Schémas Pydantic pour les présences.

La forme JSON d'un enregistrement reprend les clés camelCase historiques
(`nationalId`, `checkIn`, `checkOut`, `isImported`...) : c'est le format
stocké sous la clé `attendanceData` et renvoyé à l'interface.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from attendance_tracker.services.temporal import local_timezone

CITIES = [
    "الدمام", "الرياض", "جيزان", "نجران",
    "حايل", "احد رفيده", "بريدة", "سكاكا",
]

VOLUNTEER_OPPORTUNITIES = [
    "دعم امين مكتبة",
    "دعم تقني",
    "دعم علاقات العملاء",
    "منسق فعاليات ثقافية",
    "منسق شراكات ميداني",
    "دعم مرافق",
    "مصمم جرافيك",
    "مصور فوتوغرافي",
]

ALL_CITIES = "all"


class ParticipantType(str, Enum):
    """Catégorie de participant ; la valeur est le libellé stocké."""
    VOLUNTEER = "متطوع"
    TRAINEE = "متدرب"
    PREPARATORY = "تمهير"

    @classmethod
    def parse(cls, raw: str) -> Optional["ParticipantType"]:
        """Résout un libellé arabe ou anglais (insensible à la casse), None si inconnu."""
        value = (raw or "").strip().lower()
        for member in cls:
            if value in (member.value, member.name.lower()):
                return member
        return None


# Types dont les participants sont mémorisés pour l'autocomplétion
DIRECTORY_TYPES = (ParticipantType.TRAINEE, ParticipantType.PREPARATORY)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AttendanceRecord(CamelModel):
    """Un passage (arrivée, puis éventuellement départ) d'un participant."""
    id: int
    city: str
    name: str
    phone: str
    type: ParticipantType
    opportunity: str = ""
    national_id: str = ""
    check_in: datetime
    check_out: Optional[datetime] = None   # None = session ouverte
    notes: str = ""
    is_imported: bool = False              # absent des données antérieures aux imports

    @field_validator("opportunity", "national_id", "notes", mode="before")
    @classmethod
    def none_as_empty(cls, v: Optional[str]) -> str:
        return v or ""

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        # Départ non renseigné : "" dans certaines données stockées
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("type", mode="before")
    @classmethod
    def accept_type_alias(cls, v):
        # Libellé anglais écrit tel quel par d'anciens imports ("volunteer")
        if isinstance(v, str):
            return ParticipantType.parse(v) or v
        return v

    @field_validator("check_in", "check_out")
    @classmethod
    def assume_local_time(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Horodatage sans fuseau : heure murale du poste
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=local_timezone())
        return v

    @property
    def is_open(self) -> bool:
        return self.check_out is None


class SavedUser(BaseModel):
    """Entrée de l'annuaire d'autocomplétion (stagiaires et تمهير)."""
    name: str
    phone: str


SavedUserDirectory = Dict[ParticipantType, List[SavedUser]]


class CheckInRequest(CamelModel):
    """Saisie brute du formulaire d'arrivée ; la validation métier est faite par le service."""
    city: str = ""
    name: str = ""
    phone: str = ""
    type: str = ""
    opportunity: str = ""
    national_id: str = ""


class CheckInData(BaseModel):
    """Saisie d'arrivée validée et normalisée."""
    city: str
    name: str
    phone: str
    type: ParticipantType
    opportunity: str = ""
    national_id: str = ""


class CheckOutRequest(BaseModel):
    phone: str = ""
    city: str


class NotesUpdate(BaseModel):
    notes: str = ""


class ReferenceData(BaseModel):
    """Listes fixes utilisées par l'interface pour remplir les menus."""
    cities: List[str]
    opportunities: List[str]
    participant_types: List[str]
