"""
Router du tableau de bord : indicateurs par catégorie sur l'ensemble filtré.
"""

from fastapi import APIRouter, Depends

from attendance_tracker.dependencies import get_record_filter, get_store
from attendance_tracker.schemas.dashboard import DashboardKpis, RecordFilter
from attendance_tracker.services import query_service
from attendance_tracker.services.record_store import AttendanceStore

router = APIRouter(prefix="/api/v1/dashboard", tags=["Tableau de bord"])


@router.get("/kpis", response_model=DashboardKpis, summary="Indicateurs par catégorie")
def get_kpis(
    criteria: RecordFilter = Depends(get_record_filter),
    store: AttendanceStore = Depends(get_store),
):
    """
    Sessions, sessions terminées, heures, moyenne, jours distincts et taux de
    complétion pour les bénévoles, les stagiaires et les تمهير.
    Recalculé à chaque appel ; les présences importées sont incluses.
    """
    return query_service.dashboard_kpis(store.records, criteria)
