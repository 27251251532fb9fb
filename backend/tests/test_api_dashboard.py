"""
Tests d'intégration API : tableau de bord, accès administrateur, référentiel, santé.
"""

from datetime import datetime, timedelta, timezone

from attendance_tracker.schemas.attendance import CITIES, AttendanceRecord, ParticipantType

UTC = timezone.utc


def add_session(store, record_id, participant_type, hours=None, city="الرياض"):
    check_in = datetime(2024, 3, 14, 5, 0, tzinfo=UTC) + timedelta(days=record_id)
    store.records.append(AttendanceRecord(
        id=record_id, city=city, name="مشارك", phone=f"05{record_id:08d}", type=participant_type,
        check_in=check_in, check_out=check_in + timedelta(hours=hours) if hours else None,
    ))


# ============================================================
# GET /api/v1/dashboard/kpis
# ============================================================

def test_kpis(client, store):
    add_session(store, 1, ParticipantType.VOLUNTEER, hours=2)
    add_session(store, 2, ParticipantType.VOLUNTEER)
    add_session(store, 3, ParticipantType.PREPARATORY, hours=8, city="الدمام")

    resp = client.get("/api/v1/dashboard/kpis")

    assert resp.status_code == 200
    data = resp.json()
    assert data["volunteers"]["total_sessions"] == 2
    assert data["volunteers"]["completion_rate"] == 50
    assert data["volunteers"]["total_hours"] == 2.0
    assert data["preparatory"]["unique_days"] == 1
    assert data["trainees"]["total_sessions"] == 0


def test_kpis_filtre_ville(client, store):
    add_session(store, 1, ParticipantType.VOLUNTEER, hours=2)
    add_session(store, 3, ParticipantType.PREPARATORY, hours=8, city="الدمام")

    data = client.get("/api/v1/dashboard/kpis", params={"city": "الدمام"}).json()

    assert data["volunteers"]["total_sessions"] == 0
    assert data["preparatory"]["total_sessions"] == 1


# ============================================================
# POST /api/v1/admin/login
# ============================================================

def test_acces_admin_accorde(client):
    resp = client.post("/api/v1/admin/login", json={"username": "admin", "password": "admin123456"})
    assert resp.status_code == 200
    assert resp.json() == {"authorized": True}


def test_acces_second_compte(client):
    resp = client.post("/api/v1/admin/login", json={"username": "specialist2", "password": "spec456"})
    assert resp.status_code == 200


def test_acces_admin_refuse(client):
    resp = client.post("/api/v1/admin/login", json={"username": "admin", "password": "spec123"})
    assert resp.status_code == 401


def test_acces_mot_de_passe_arabe(client):
    resp = client.post("/api/v1/admin/login", json={"username": "admin", "password": "كلمة"})
    assert resp.status_code == 401


# ============================================================
# Référentiel et santé
# ============================================================

def test_referentiel(client):
    data = client.get("/api/v1/reference").json()
    assert data["cities"] == CITIES
    assert data["participant_types"] == ["متطوع", "متدرب", "تمهير"]
    assert len(data["opportunities"]) == 8


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
