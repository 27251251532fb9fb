"""
Stockage clé-valeur durable (table storage_entries).

Chaque valeur est un document JSON déjà sérialisé. Les écritures de plusieurs
clés se font dans une seule transaction : attendanceData et savedUsers sont
toujours enregistrés ensemble.
"""

import logging
from typing import Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attendance_tracker.database import SessionLocal
from attendance_tracker.exceptions import PersistenceError
from attendance_tracker.models.storage_entry import StorageEntry

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "حدث خطأ في حفظ البيانات"
LOAD_FAILED_MESSAGE = "حدث خطأ في تحميل البيانات"


class KeyValueStorage:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def read(self, key: str) -> Optional[str]:
        """Retourne la valeur brute stockée sous `key`, ou None si absente."""
        db = self._session_factory()
        try:
            entry = db.get(StorageEntry, key)
            return entry.value if entry is not None else None
        except SQLAlchemyError as exc:
            logger.error("Lecture impossible de la clé %s : %s", key, exc)
            raise PersistenceError(LOAD_FAILED_MESSAGE) from exc
        finally:
            db.close()

    def write_many(self, values: Dict[str, str]) -> None:
        """Insère ou remplace plusieurs clés dans une même transaction."""
        db = self._session_factory()
        try:
            for key, value in values.items():
                entry = db.get(StorageEntry, key)
                if entry is None:
                    db.add(StorageEntry(key=key, value=value))
                else:
                    entry.value = value
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Échec d'écriture du stockage (%s) : %s", ", ".join(values), exc)
            raise PersistenceError(SAVE_FAILED_MESSAGE) from exc
        finally:
            db.close()
