"""
Tests d'intégration API pour les exports CSV / PDF.
"""

from datetime import datetime, timedelta, timezone

import pytest

from attendance_tracker.schemas.attendance import AttendanceRecord, ParticipantType

UTC = timezone.utc


@pytest.fixture
def populated_store(store):
    check_in = datetime(2024, 3, 14, 6, 0, tzinfo=UTC)
    store.records.extend([
        AttendanceRecord(
            id=1, city="الرياض", name="سارة", phone="0512345678", type=ParticipantType.VOLUNTEER,
            opportunity="دعم تقني", national_id="1234567890",
            check_in=check_in, check_out=check_in + timedelta(hours=3),
        ),
        AttendanceRecord(
            id=2, city="الدمام", name="علي", phone="0598765432", type=ParticipantType.TRAINEE,
            check_in=check_in, check_out=check_in + timedelta(hours=8), is_imported=True,
        ),
    ])
    return store


def test_export_csv_presences(client, populated_store):
    resp = client.get("/api/v1/exports/records.csv")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="attendance_data_2' in resp.headers["content-disposition"]
    text = resp.content.decode("utf-8")
    assert text.startswith("\ufeff")
    # Les présences importées sont exportées même sans filtre
    assert len(text.strip().splitlines()) == 3


def test_export_csv_filtre_categorie(client, populated_store):
    resp = client.get("/api/v1/exports/records.csv", params={"category": "متدرب"})
    lines = resp.content.decode("utf-8").strip().splitlines()
    assert len(lines) == 2
    assert "علي" in lines[1]


def test_export_pdf_presences(client, populated_store):
    resp = client.get("/api/v1/exports/records.pdf", params={"city": "الرياض"})

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


def test_export_csv_indicateurs(client, populated_store):
    resp = client.get("/api/v1/exports/kpis.csv")

    assert resp.status_code == 200
    assert 'filename="kpi_analytics_' in resp.headers["content-disposition"]
    assert len(resp.content.decode("utf-8").strip().splitlines()) == 4


def test_export_pdf_indicateurs(client, populated_store):
    resp = client.get("/api/v1/exports/kpis.pdf")
    assert resp.status_code == 200
    assert resp.content.startswith(b"%PDF")
