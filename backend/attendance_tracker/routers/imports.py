"""
Router d'import des présences (CSV / XLSX) pour une branche.
"""

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from attendance_tracker.config import settings
from attendance_tracker.dependencies import get_store
from attendance_tracker.exceptions import ImportStructureError, NoValidRowsError, PersistenceError
from attendance_tracker.schemas.imports import ImportReport
from attendance_tracker.services.attendance_import import import_file
from attendance_tracker.services.record_store import AttendanceStore

router = APIRouter(prefix="/api/v1/imports", tags=["Import"])

FILE_TOO_LARGE_MESSAGE = "حجم الملف كبير جداً. الحد الأقصى: {size} ميغابايت"
EMPTY_UPLOAD_MESSAGE = "الملف فارغ"


@router.post("", response_model=ImportReport, summary="Importer des présences (CSV / XLSX)")
async def upload_attendance(
    city: str = Query(""),
    file: UploadFile = File(...),
    store: AttendanceStore = Depends(get_store),
):
    """
    Importe les présences d'un fichier pour la branche `city`.

    Format attendu :
    - Colonnes obligatoires : الاسم / name, رقم الجوال / phone, التاريخ / date
    - Colonnes optionnelles : identité, type, opportunité, heure, durée
    - Fichiers : .csv (UTF-8 avec ou sans BOM, séparateur , ; ou tabulation) ou .xlsx

    Retourne le rapport d'import ; 400 si le fichier ou la branche sont inutilisables,
    422 si aucune ligne n'est valide (rien n'est enregistré).
    """
    content = await file.read()

    # Validation de la taille
    if len(content) > settings.MAX_IMPORT_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=FILE_TOO_LARGE_MESSAGE.format(size=settings.MAX_IMPORT_SIZE_MB),
        )

    if not content:
        raise HTTPException(status_code=400, detail=EMPTY_UPLOAD_MESSAGE)

    try:
        # Lecture du tableau et écriture SQLAlchemy hors de la boucle d'événements
        return await run_in_threadpool(import_file, store, file.filename or "", content, city.strip())
    except ImportStructureError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NoValidRowsError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": e.message, "errors": [issue.model_dump() for issue in e.issues]},
        )
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)
