"""
Schémas Pydantic pour l'accès au tableau de bord.
"""

from pydantic import BaseModel


class AdminLoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class AdminLoginResponse(BaseModel):
    authorized: bool
