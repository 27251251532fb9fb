"""
Tests d'intégration API pour l'import de présences (POST /api/v1/imports).
"""

from unittest.mock import patch

from attendance_tracker.services.attendance_import import CITY_REQUIRED_MESSAGE
from attendance_tracker.services.table_reader import UNSUPPORTED_FILE_MESSAGE

VALID_CSV = "الاسم,رقم الجوال,التاريخ,المدة\nسارة,0512345678,15/03/2024,4\nعلي,,15/03/2024,\n".encode("utf-8")


def upload(client, content: bytes, filename: str = "presences.csv", city: str = "الرياض"):
    return client.post(
        "/api/v1/imports",
        params={"city": city},
        files={"file": (filename, content, "text/csv")},
    )


def test_import_succes(client, store):
    resp = upload(client, VALID_CSV)

    assert resp.status_code == 200
    report = resp.json()
    assert report["imported"] == 1
    assert report["skipped"] == 1
    assert report["errors"][0]["row"] == 3
    assert report["total_hours"] == 4.0
    assert store.records[0].is_imported is True


def test_import_sans_ville(client):
    resp = upload(client, VALID_CSV, city="")
    assert resp.status_code == 400
    assert resp.json()["detail"] == CITY_REQUIRED_MESSAGE


def test_import_extension_non_supportee(client):
    resp = upload(client, VALID_CSV, filename="presences.xls")
    assert resp.status_code == 400
    assert resp.json()["detail"] == UNSUPPORTED_FILE_MESSAGE


def test_import_colonnes_manquantes(client):
    resp = upload(client, b"name,notes\nAli,x\n")
    assert resp.status_code == 400
    assert "رقم الجوال" in resp.json()["detail"]


def test_import_aucune_ligne_valide(client, store):
    resp = upload(client, b"name,phone,date\nAli,,2024-03-15\n")

    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["errors"] == [{"row": 2, "reason": "بيانات ناقصة (الاسم، رقم الجوال، التاريخ)"}]
    assert store.records == []


def test_import_fichier_vide(client):
    assert upload(client, b"").status_code == 400


def test_import_fichier_trop_volumineux(client):
    with patch("attendance_tracker.routers.imports.settings.MAX_IMPORT_SIZE_MB", 0):
        resp = upload(client, VALID_CSV)
    assert resp.status_code == 400
