"""
Configuration partagée pour tous les tests.
Base SQLite en mémoire et fuseau fixe (Riyad, UTC+3 sans heure d'été) : les
variables sont posées avant tout import de l'application.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TIMEZONE", "Asia/Riyadh")

from datetime import datetime, timezone  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from attendance_tracker.dependencies import get_store  # noqa: E402
from attendance_tracker.main import app  # noqa: E402
from attendance_tracker.services.record_store import AttendanceStore  # noqa: E402
from attendance_tracker.services.storage import KeyValueStorage  # noqa: E402


class FakeClock:
    """Horloge manipulable : `now` est un instant UTC."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    # 15/03/2024 10:00 à Riyad
    return FakeClock(datetime(2024, 3, 15, 7, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage():
    """Stockage mocké : aucune donnée existante, écritures enregistrées par le mock."""
    mock_storage = MagicMock(spec=KeyValueStorage)
    mock_storage.read.return_value = None
    return mock_storage


@pytest.fixture
def store(storage, clock):
    """Registre vide branché sur le stockage mocké et l'horloge fixe."""
    attendance_store = AttendanceStore(storage, clock=clock)
    attendance_store.load()
    return attendance_store


@pytest.fixture
def client(store):
    """Client HTTP de test avec le registre mocké."""
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
