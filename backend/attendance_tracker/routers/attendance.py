"""
Router des présences : arrivée, départ, tableau, notes, suppression, annuaire.

Routes synchrones (pool de threads FastAPI) : les écritures SQLAlchemy ne
bloquent pas la boucle d'événements, le verrou du registre les sérialise.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from attendance_tracker.dependencies import get_record_filter, get_store
from attendance_tracker.exceptions import (
    ActiveSessionNotFoundError,
    CheckInValidationError,
    PersistenceError,
)
from attendance_tracker.schemas.attendance import (
    AttendanceRecord,
    CheckInRequest,
    CheckOutRequest,
    NotesUpdate,
    ParticipantType,
    SavedUser,
)
from attendance_tracker.schemas.dashboard import RecordFilter
from attendance_tracker.services import query_service
from attendance_tracker.services.record_store import AttendanceStore
from attendance_tracker.services.validation import validate_check_in, validate_check_out_phone

router = APIRouter(prefix="/api/v1/attendance", tags=["Présences"])


@router.post("/check-in", response_model=AttendanceRecord, status_code=201, summary="Enregistrer une arrivée")
def check_in(data: CheckInRequest, store: AttendanceStore = Depends(get_store)):
    """
    Valide la saisie puis crée une session ouverte (heure d'arrivée = maintenant).

    Retourne 400 avec le message de la première règle violée,
    503 si l'enregistrement n'a pas pu être persisté.
    """
    try:
        return store.create_record(validate_check_in(data))
    except CheckInValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.post("/check-out", response_model=AttendanceRecord, summary="Enregistrer un départ")
def check_out(data: CheckOutRequest, store: AttendanceStore = Depends(get_store)):
    """
    Clôture la session ouverte du jour pour ce téléphone dans cette ville.

    Retourne 404 si aucune session ouverte ne correspond (déjà sorti, autre ville,
    pas d'arrivée aujourd'hui).
    """
    try:
        phone = validate_check_out_phone(data.phone)
        return store.close_active_session(phone, data.city)
    except CheckInValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ActiveSessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.get("", response_model=List[AttendanceRecord], summary="Tableau des présences")
def list_attendance(
    category: Optional[ParticipantType] = None,
    criteria: RecordFilter = Depends(get_record_filter),
    store: AttendanceStore = Depends(get_store),
):
    """
    Lignes du tableau, de la plus récente à la plus ancienne.
    Sans filtre actif, les présences importées sont masquées.
    """
    return query_service.table_view(store.records, criteria, category)


@router.get("/saved-users", response_model=List[SavedUser], summary="Annuaire d'autocomplétion")
def saved_users(type: ParticipantType, store: AttendanceStore = Depends(get_store)):
    """Participants déjà connus pour ce type (vide pour les bénévoles)."""
    return store.saved_users_for(type)


@router.patch("/{record_id}/notes", status_code=204, summary="Modifier les notes")
def update_notes(record_id: int, data: NotesUpdate, store: AttendanceStore = Depends(get_store)):
    """Remplace les notes. Un identifiant inconnu est ignoré silencieusement."""
    try:
        store.update_notes(record_id, data.notes)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.delete("/{record_id}", status_code=204, summary="Supprimer une présence")
def delete_attendance(record_id: int, store: AttendanceStore = Depends(get_store)):
    """Supprime définitivement l'enregistrement. Un identifiant inconnu est ignoré silencieusement."""
    try:
        store.delete_record(record_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)
