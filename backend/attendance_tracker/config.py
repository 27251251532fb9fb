"""
Configuration centrale de l'application via variables d'environnement.
Charger depuis un fichier .env en développement.
"""

from typing import List

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdminCredential(BaseModel):
    """Paire identifiant / mot de passe du tableau de bord (simple filtre d'accès UI)."""
    username: str
    password: str


class Settings(BaseSettings):
    # Stockage clé-valeur (SQLite local par défaut, un seul poste client)
    DATABASE_URL: str = "sqlite:///./attendance.db"

    # Fuseau horaire du poste : définit le "même jour" pour les présences
    TIMEZONE: str = "Asia/Riyadh"

    # Affichage des chiffres en indo-arabe (٠١٢٣...) dans les dates/heures/exports
    ARABIC_INDIC_DIGITS: bool = True

    # Taux de complétion stagiaires / تمهير : durée supposée du programme (≈ 6 mois)
    PROGRAM_EXPECTED_DAYS: int = 180

    # Import : valeurs par défaut quand les colonnes durée / heure sont absentes
    DEFAULT_IMPORT_DURATION_HOURS: float = 8.0
    DEFAULT_IMPORT_HOUR: int = 8
    MAX_IMPORT_SIZE_MB: int = 5

    # Police TTF optionnelle pour les exports PDF (glyphes arabes)
    PDF_FONT_PATH: str = ""

    # Accès au tableau de bord : ce n'est PAS une authentification
    ADMIN_CREDENTIALS: List[AdminCredential] = [
        AdminCredential(username="admin", password="admin123456"),
        AdminCredential(username="specialist1", password="spec123"),
        AdminCredential(username="specialist2", password="spec456"),
    ]

    # Environnement
    ENV: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
