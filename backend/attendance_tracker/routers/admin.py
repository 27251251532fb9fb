"""
Router d'accès au tableau de bord administrateur.
"""

from fastapi import APIRouter, HTTPException

from attendance_tracker.schemas.admin import AdminLoginRequest, AdminLoginResponse
from attendance_tracker.services import admin_service

router = APIRouter(prefix="/api/v1/admin", tags=["Administration"])

INVALID_CREDENTIALS_MESSAGE = "اسم المستخدم أو كلمة المرور غير صحيحة"


@router.post("/login", response_model=AdminLoginResponse, summary="Vérifier un accès administrateur")
def admin_login(data: AdminLoginRequest):
    """
    Compare la paire identifiant / mot de passe aux comptes configurés.
    Retourne 401 si aucun compte ne correspond. Aucune session n'est ouverte.
    """
    if not admin_service.is_admin(data.username, data.password):
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS_MESSAGE)
    return AdminLoginResponse(authorized=True)
