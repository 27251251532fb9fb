"""
Tests du stockage clé-valeur sur une base SQLite en mémoire.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from attendance_tracker.database import Base
from attendance_tracker.exceptions import PersistenceError
from attendance_tracker.models.storage_entry import StorageEntry
from attendance_tracker.services.record_store import AttendanceStore
from attendance_tracker.services.storage import KeyValueStorage


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_cle_absente(session_factory):
    assert KeyValueStorage(session_factory).read("attendanceData") is None


def test_ecriture_puis_lecture(session_factory):
    storage = KeyValueStorage(session_factory)
    storage.write_many({"attendanceData": "[]", "savedUsers": "{}"})

    assert storage.read("attendanceData") == "[]"
    assert storage.read("savedUsers") == "{}"


def test_ecriture_remplace_la_valeur(session_factory):
    storage = KeyValueStorage(session_factory)
    storage.write_many({"attendanceData": "[]"})
    storage.write_many({"attendanceData": '[{"id": 1}]'})

    db = session_factory()
    try:
        assert db.query(StorageEntry).count() == 1
    finally:
        db.close()
    assert storage.read("attendanceData") == '[{"id": 1}]'


def test_texte_arabe_conserve(session_factory):
    storage = KeyValueStorage(session_factory)
    storage.write_many({"savedUsers": '{"متدرب": [{"name": "سارة"}]}'})
    assert "سارة" in storage.read("savedUsers")


def test_echec_d_ecriture():
    db = MagicMock()
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))
    storage = KeyValueStorage(lambda: db)

    with pytest.raises(PersistenceError):
        storage.write_many({"attendanceData": "[]"})
    db.rollback.assert_called_once()
    db.close.assert_called_once()


def test_echec_de_lecture():
    db = MagicMock()
    db.get.side_effect = OperationalError("SELECT", {}, Exception("no such table"))

    with pytest.raises(PersistenceError):
        KeyValueStorage(lambda: db).read("attendanceData")


def test_registre_relu_apres_redemarrage(session_factory):
    """Ce qui est persisté par un registre est relu par le suivant."""
    from attendance_tracker.schemas.attendance import CheckInData, ParticipantType

    first = AttendanceStore(KeyValueStorage(session_factory))
    first.load()
    first.create_record(CheckInData(
        city="الرياض", name="سارة", phone="0512345678", type=ParticipantType.TRAINEE,
    ))

    second = AttendanceStore(KeyValueStorage(session_factory))
    second.load()

    assert len(second.records) == 1
    assert second.records[0].name == "سارة"
    assert second.records[0].check_in == first.records[0].check_in
    assert second.saved_users_for(ParticipantType.TRAINEE)[0].phone == "0512345678"
