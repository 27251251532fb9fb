"""
Registre des présences : collection en mémoire + persistance clé-valeur.

Cycle de vie : chargé une fois au démarrage (load), modifié uniquement via
les opérations ci-dessous, persisté intégralement après chaque mutation.
Les seules mutations possibles d'un enregistrement existant sont le départ
(checkOut, une seule fois) et les notes.

Le registre suppose un seul client actif : aucune transaction, la dernière
écriture gagne. Les routes FastAPI synchrones s'exécutent dans le pool de
threads : les mutations sont sérialisées par `lock` (réentrant, un import
le garde entre le calcul des identifiants et l'enregistrement du lot).
"""

import json
import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from attendance_tracker.exceptions import ActiveSessionNotFoundError, PersistenceError
from attendance_tracker.schemas.attendance import (
    DIRECTORY_TYPES,
    AttendanceRecord,
    CheckInData,
    ParticipantType,
    SavedUser,
    SavedUserDirectory,
)
from attendance_tracker.services.storage import KeyValueStorage
from attendance_tracker.services.temporal import local_date_key, utc_now

logger = logging.getLogger(__name__)

ATTENDANCE_KEY = "attendanceData"
SAVED_USERS_KEY = "savedUsers"

NO_ACTIVE_SESSION_MESSAGE = "لا يوجد حضور مسجل لهذا الرقم أو تم تسجيل الخروج مسبقاً"

_records_adapter = TypeAdapter(List[AttendanceRecord])


def empty_directory() -> SavedUserDirectory:
    return {participant_type: [] for participant_type in DIRECTORY_TYPES}


class AttendanceStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._storage = storage
        self._clock = clock
        self.lock = threading.RLock()
        self.records: List[AttendanceRecord] = []
        self.saved_users: SavedUserDirectory = empty_directory()

    # --- Chargement / persistance ---

    def load(self) -> None:
        """
        Lit attendanceData et reconstruit l'annuaire d'autocomplétion.
        Une valeur illisible ne bloque jamais le démarrage : registre vide.
        """
        try:
            raw = self._storage.read(ATTENDANCE_KEY)
        except PersistenceError:
            logger.warning("Stockage indisponible au démarrage, registre vide.")
            raw = None

        self.records = self._parse_records(raw)
        self.rebuild_user_directory()
        logger.info("Données chargées : %d présences", len(self.records))

    @staticmethod
    def _parse_records(raw: Optional[str]) -> List[AttendanceRecord]:
        """
        Valide les enregistrements un par un : un enregistrement invalide est
        écarté (et journalisé) sans faire perdre les autres.
        """
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except ValueError as exc:
            logger.warning("attendanceData illisible, registre vide : %s", exc)
            return []
        if not isinstance(items, list):
            logger.warning("attendanceData n'est pas un tableau, registre vide.")
            return []

        records = []
        for position, item in enumerate(items):
            try:
                records.append(AttendanceRecord.model_validate(item))
            except ValidationError as exc:
                logger.warning("Enregistrement %d écarté au chargement : %s", position, exc)
        return records

    def persist(self) -> None:
        """Écrit les deux clés ensemble. Lève PersistenceError si le stockage échoue."""
        saved_users = {
            participant_type.value: [user.model_dump() for user in users]
            for participant_type, users in self.saved_users.items()
        }
        self._storage.write_many({
            ATTENDANCE_KEY: _records_adapter.dump_json(self.records, by_alias=True).decode("utf-8"),
            SAVED_USERS_KEY: json.dumps(saved_users, ensure_ascii=False),
        })

    # --- Lecture ---

    def next_id(self) -> int:
        """1 + plus grand identifiant existant, 1 si le registre est vide."""
        return max((record.id for record in self.records), default=0) + 1

    def find(self, record_id: int) -> Optional[AttendanceRecord]:
        return next((r for r in self.records if r.id == record_id), None)

    def find_active_session(self, phone: str, city: str) -> Optional[AttendanceRecord]:
        """
        Dernière session ouverte aujourd'hui (jour local) pour ce téléphone et cette ville.
        Plusieurs arrivées le même jour sont permises : c'est la plus récente qui est visée.
        """
        today = local_date_key(self._clock())
        candidates = [
            record for record in self.records
            if record.phone == phone
            and record.city == city
            and record.is_open
            and local_date_key(record.check_in) == today
        ]
        return candidates[-1] if candidates else None

    def saved_users_for(self, participant_type: ParticipantType) -> List[SavedUser]:
        return list(self.saved_users.get(participant_type, []))

    # --- Mutations ---

    def create_record(self, data: CheckInData) -> AttendanceRecord:
        """Enregistre une arrivée (checkIn = maintenant, session ouverte)."""
        is_volunteer = data.type is ParticipantType.VOLUNTEER
        with self.lock:
            record = AttendanceRecord(
                id=self.next_id(),
                city=data.city,
                name=data.name,
                phone=data.phone,
                type=data.type,
                opportunity=data.opportunity if is_volunteer else "",
                national_id=data.national_id if is_volunteer else "",
                check_in=self._clock(),
                check_out=None,
                notes="",
                is_imported=False,
            )
            self.records.append(record)
            self.remember_user(record)
            self.persist()

        logger.info("Arrivée enregistrée : #%d %s (%s, %s)", record.id, record.name, record.city, record.type.value)
        return record

    def close_active_session(self, phone: str, city: str) -> AttendanceRecord:
        """
        Enregistre le départ de la session ouverte du jour.
        Lève ActiveSessionNotFoundError si aucune session ne correspond
        (déjà sorti, autre ville, ou pas d'arrivée aujourd'hui).
        """
        with self.lock:
            record = self.find_active_session(phone.strip(), city)
            if record is None:
                raise ActiveSessionNotFoundError(NO_ACTIVE_SESSION_MESSAGE)

            record.check_out = max(self._clock(), record.check_in)
            self.persist()

        logger.info("Départ enregistré : #%d %s", record.id, record.name)
        return record

    def update_notes(self, record_id: int, notes: str) -> Optional[AttendanceRecord]:
        """Met à jour les notes ; identifiant inconnu → aucun effet (None)."""
        with self.lock:
            record = self.find(record_id)
            if record is None:
                logger.debug("Notes ignorées : enregistrement %d introuvable", record_id)
                return None

            record.notes = notes.strip()
            self.persist()
        return record

    def delete_record(self, record_id: int) -> Optional[AttendanceRecord]:
        """Supprime définitivement un enregistrement ; identifiant inconnu → aucun effet (None)."""
        with self.lock:
            record = self.find(record_id)
            if record is None:
                logger.debug("Suppression ignorée : enregistrement %d introuvable", record_id)
                return None

            self.records.remove(record)
            self.persist()

        logger.info("Enregistrement supprimé : #%d %s", record.id, record.name)
        return record

    def add_records(self, records: Iterable[AttendanceRecord]) -> None:
        """Ajoute un lot (import) puis persiste une seule fois."""
        with self.lock:
            self.records.extend(records)
            self.persist()

    # --- Annuaire d'autocomplétion ---

    def remember_user(self, record: AttendanceRecord) -> None:
        """Ajoute le participant à l'annuaire si son téléphone n'y est pas encore pour ce type."""
        if record.type not in DIRECTORY_TYPES:
            return
        users = self.saved_users.setdefault(record.type, [])
        if not any(user.phone == record.phone for user in users):
            users.append(SavedUser(name=record.name, phone=record.phone))

    def rebuild_user_directory(self) -> None:
        """Reconstruit l'annuaire depuis l'historique, dédupliqué par téléphone + type."""
        directory = empty_directory()
        seen = set()
        for record in self.records:
            if record.type not in DIRECTORY_TYPES:
                continue
            key = (record.phone, record.type)
            if key in seen:
                continue
            seen.add(key)
            directory[record.type].append(SavedUser(name=record.name, phone=record.phone))
        self.saved_users = directory
