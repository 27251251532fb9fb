"""
Router des exports : présences et indicateurs, en CSV ou PDF.
Les mêmes filtres que le tableau s'appliquent, sans masquer les présences importées.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from attendance_tracker.dependencies import get_record_filter, get_store
from attendance_tracker.schemas.attendance import ParticipantType
from attendance_tracker.schemas.dashboard import RecordFilter
from attendance_tracker.services import export_service, query_service
from attendance_tracker.services.record_store import AttendanceStore

router = APIRouter(prefix="/api/v1/exports", tags=["Exports"])

RECORDS_PREFIX = "attendance_data"
KPIS_PREFIX = "kpi_analytics"


def _attachment(content, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/records.csv", summary="Exporter les présences en CSV")
def export_records_csv(
    category: Optional[ParticipantType] = None,
    criteria: RecordFilter = Depends(get_record_filter),
    store: AttendanceStore = Depends(get_store),
):
    """Ordre du registre (chronologique), BOM UTF-8 pour Excel."""
    records = query_service.export_records(store.records, criteria, category)
    return _attachment(
        export_service.records_to_csv(records).encode("utf-8"),
        "text/csv; charset=utf-8",
        export_service.export_filename(RECORDS_PREFIX, "csv"),
    )


@router.get("/records.pdf", summary="Exporter les présences en PDF")
def export_records_pdf(
    category: Optional[ParticipantType] = None,
    criteria: RecordFilter = Depends(get_record_filter),
    store: AttendanceStore = Depends(get_store),
):
    """Rapport imprimable, du plus récent au plus ancien."""
    records = query_service.export_records(store.records, criteria, category)
    return _attachment(
        export_service.records_to_pdf(records),
        "application/pdf",
        export_service.export_filename(RECORDS_PREFIX, "pdf"),
    )


@router.get("/kpis.csv", summary="Exporter les indicateurs en CSV")
def export_kpis_csv(
    criteria: RecordFilter = Depends(get_record_filter),
    store: AttendanceStore = Depends(get_store),
):
    kpis = query_service.dashboard_kpis(store.records, criteria)
    return _attachment(
        export_service.kpis_to_csv(kpis).encode("utf-8"),
        "text/csv; charset=utf-8",
        export_service.export_filename(KPIS_PREFIX, "csv"),
    )


@router.get("/kpis.pdf", summary="Exporter les indicateurs en PDF")
def export_kpis_pdf(
    criteria: RecordFilter = Depends(get_record_filter),
    store: AttendanceStore = Depends(get_store),
):
    kpis = query_service.dashboard_kpis(store.records, criteria)
    return _attachment(
        export_service.kpis_to_pdf(kpis),
        "application/pdf",
        export_service.export_filename(KPIS_PREFIX, "pdf"),
    )
