"""
Dépendances FastAPI partagées par les routers.
"""

from datetime import date
from typing import Optional

from fastapi import Request

from attendance_tracker.schemas.dashboard import RecordFilter
from attendance_tracker.services.record_store import AttendanceStore


def get_store(request: Request) -> AttendanceStore:
    """Registre chargé au démarrage (voir lifespan dans main.py)."""
    return request.app.state.store


def get_record_filter(
    city: str = "",
    phone: str = "",
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> RecordFilter:
    """Filtres communs du tableau et des exports (paramètres de requête)."""
    return RecordFilter(city=city, phone=phone, date_from=date_from, date_to=date_to)
