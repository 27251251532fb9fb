"""
Schémas Pydantic pour le tableau de bord : filtres et indicateurs par catégorie.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, field_validator

from attendance_tracker.schemas.attendance import ALL_CITIES


class RecordFilter(BaseModel):
    """Critères de filtrage ; chaque critère vide est ignoré (ET logique entre eux)."""
    city: str = ALL_CITIES
    phone: str = ""
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None

    @field_validator("city", mode="before")
    @classmethod
    def empty_city_means_all(cls, v: Optional[str]) -> str:
        return (v or "").strip() or ALL_CITIES

    @field_validator("phone", mode="before")
    @classmethod
    def strip_phone(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @property
    def is_active(self) -> bool:
        return (
            self.city != ALL_CITIES
            or bool(self.phone)
            or self.date_from is not None
            or self.date_to is not None
        )


class CategoryStats(BaseModel):
    total_sessions: int
    completed_sessions: int
    total_hours: float          # somme brute, non arrondie
    avg_session_hours: float    # arrondi à 1 décimale
    unique_days: int
    completion_rate: int        # pourcentage 0-100


class DashboardKpis(BaseModel):
    volunteers: CategoryStats
    trainees: CategoryStats
    preparatory: CategoryStats
