"""
Configuration de la connexion à la base de données.
Sert uniquement de stockage clé-valeur durable pour le registre des présences.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from attendance_tracker.config import settings


def _engine_options(url: str) -> dict:
    """Options SQLite : accès multi-thread (threadpool FastAPI) et base mémoire partagée."""
    if not url.startswith("sqlite"):
        return {}
    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    """Crée les tables manquantes (appelé au démarrage de l'API)."""
    import attendance_tracker.models  # noqa: F401 (enregistre les modèles dans Base.metadata)

    Base.metadata.create_all(bind=engine)
