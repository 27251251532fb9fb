"""
Router des listes de référence (branches, opportunités, types de participant).
"""

from fastapi import APIRouter

from attendance_tracker.schemas.attendance import (
    CITIES,
    VOLUNTEER_OPPORTUNITIES,
    ParticipantType,
    ReferenceData,
)

router = APIRouter(prefix="/api/v1/reference", tags=["Référentiel"])


@router.get("", response_model=ReferenceData, summary="Listes de référence")
def get_reference_data():
    return ReferenceData(
        cities=CITIES,
        opportunities=VOLUNTEER_OPPORTUNITIES,
        participant_types=[participant_type.value for participant_type in ParticipantType],
    )
