"""
Tests unitaires pour le service d'import des présences (CSV / XLSX).
Fuseau des tests : Asia/Riyadh (UTC+3).
"""

from datetime import datetime, timedelta, timezone

import pytest

from attendance_tracker.exceptions import ImportStructureError, NoValidRowsError
from attendance_tracker.schemas.attendance import ParticipantType
from attendance_tracker.services.attendance_import import (
    CITY_REQUIRED_MESSAGE,
    DEFAULT_OPPORTUNITY,
    EMPTY_FILE_MESSAGE,
    INVALID_DATE_MESSAGE,
    MISSING_ROW_DATA_MESSAGE,
    import_file,
    import_rows,
    parse_duration,
    resolve_columns,
)

UTC = timezone.utc


def csv_bytes(text: str) -> bytes:
    return text.encode("utf-8")


# --- Colonnes ---

def test_colonnes_arabes():
    indices = resolve_columns(["الاسم", "رقم الجوال", "التاريخ", "المدة"])
    assert indices["name"] == 0
    assert indices["phone"] == 1
    assert indices["date"] == 2
    assert indices["duration"] == 3
    assert indices["time"] is None


def test_colonnes_anglaises_casse_et_espaces():
    indices = resolve_columns(["  Full   Name ", "PHONE NUMBER", "Date"])
    assert indices["name"] == 0
    assert indices["phone"] == 1


def test_colonnes_obligatoires_manquantes():
    with pytest.raises(ImportStructureError) as exc_info:
        resolve_columns(["name", "notes"])
    assert exc_info.value.missing_columns == ["رقم الجوال", "التاريخ"]
    assert "رقم الجوال، التاريخ" in exc_info.value.message


# --- Durée ---

@pytest.mark.parametrize("value, expected", [
    (4, 4.0),
    ("2.5", 2.5),
    ("3 ساعات", 3.0),
    ("٦", 6.0),
    ("", 8.0),
    (0, 8.0),
    ("-2", 8.0),
    ("abc", 8.0),
    (float("inf"), 8.0),
    (float("nan"), 8.0),
])
def test_parse_duree(value, expected):
    assert parse_duration(value) == expected


# --- Import ---

def test_import_nominal(store):
    rows = [
        ["الاسم", "رقم الجوال", "النوع", "التاريخ", "الساعة", "المدة"],
        ["سارة", "0512345678", "متدرب", "15/03/2024", "9:00", "4"],
        ["علي", "0598765432", "تمهير", "16/03/2024", "", ""],
    ]
    report = import_rows(store, rows, "الدمام")

    assert report.total_rows == 2
    assert report.imported == 2
    assert report.skipped == 0
    assert report.total_hours == 12.0
    assert report.unique_days == 2
    assert report.by_type == {"متدرب": 1, "تمهير": 1}

    first, second = store.records
    assert first.id == 1 and second.id == 2
    assert first.city == "الدمام"
    assert first.is_imported is True
    assert first.check_in == datetime(2024, 3, 15, 6, 0, tzinfo=UTC)
    assert first.check_out == datetime(2024, 3, 15, 10, 0, tzinfo=UTC)
    assert first.notes == "تم الاستيراد من ملف (4 ساعة)"
    # Heure et durée par défaut : 08:00 locale, 8 h
    assert second.check_in == datetime(2024, 3, 16, 5, 0, tzinfo=UTC)
    assert second.check_out == datetime(2024, 3, 16, 13, 0, tzinfo=UTC)


def test_import_type_par_defaut_benevole(store):
    rows = [
        ["name", "phone", "date", "national id"],
        ["Ali", "0512345678", "2024-03-15", "١٢٣٤٥٦٧٨٩٠"],
    ]
    import_rows(store, rows, "الرياض")

    record = store.records[0]
    assert record.type is ParticipantType.VOLUNTEER
    assert record.opportunity == DEFAULT_OPPORTUNITY
    assert record.national_id == "1234567890"


def test_import_non_benevole_sans_identite(store):
    rows = [
        ["name", "phone", "date", "type", "opportunity", "national id"],
        ["Ali", "0512345678", "2024-03-15", "trainee", "دعم تقني", "1234567890"],
    ]
    import_rows(store, rows, "الرياض")

    record = store.records[0]
    assert record.opportunity == ""
    assert record.national_id == ""


def test_import_zero_initial_restaure(store):
    """Le tableur a converti 0512345678 en nombre."""
    rows = [["name", "phone", "date"], ["Ali", 512345678, 45000]]
    import_rows(store, rows, "الرياض")
    assert store.records[0].phone == "0512345678"


def test_import_lignes_invalides_ignorees(store):
    rows = [
        ["name", "phone", "date", "type"],
        ["Ali", "0512345678", "2024-03-15", ""],
        ["", "0512345678", "2024-03-15", ""],
        ["Sara", "0598765432", "pas une date", ""],
        ["Omar", "0555555555", "2024-03-15", "زائر"],
    ]
    report = import_rows(store, rows, "الرياض")

    assert report.imported == 1
    assert report.skipped == 3
    assert [issue.row for issue in report.errors] == [3, 4, 5]
    assert report.errors[0].reason == MISSING_ROW_DATA_MESSAGE
    assert report.errors[1].reason == INVALID_DATE_MESSAGE
    assert "زائر" in report.errors[2].reason


def test_import_lignes_vides_non_comptees(store):
    rows = [
        ["name", "phone", "date"],
        ["", "", ""],
        ["Ali", "0512345678", "2024-03-15"],
    ]
    report = import_rows(store, rows, "الرياض")
    assert report.total_rows == 1
    assert report.skipped == 0


def test_import_sans_ligne_valide_rien_enregistre(store, storage):
    storage.write_many.reset_mock()
    rows = [["name", "phone", "date"], ["Ali", "", "2024-03-15"]]

    with pytest.raises(NoValidRowsError) as exc_info:
        import_rows(store, rows, "الرياض")

    assert exc_info.value.issues[0].row == 2
    assert store.records == []
    storage.write_many.assert_not_called()


def test_import_fichier_vide(store):
    with pytest.raises(ImportStructureError) as exc_info:
        import_rows(store, [["name", "phone", "date"]], "الرياض")
    assert exc_info.value.message == EMPTY_FILE_MESSAGE


def test_import_ids_apres_existants(store):
    import_rows(store, [["name", "phone", "date"], ["Ali", "0512345678", "2024-03-15"]], "الرياض")
    import_rows(store, [["name", "phone", "date"], ["Sara", "0598765432", "2024-03-16"]], "الرياض")
    assert [record.id for record in store.records] == [1, 2]


def test_import_persiste_une_seule_fois(store, storage):
    storage.write_many.reset_mock()
    rows = [
        ["name", "phone", "date"],
        ["Ali", "0512345678", "2024-03-15"],
        ["Sara", "0598765432", "2024-03-16"],
    ]
    import_rows(store, rows, "الرياض")
    storage.write_many.assert_called_once()


# --- Fichier complet ---

def test_import_fichier_csv(store):
    content = csv_bytes("الاسم;رقم الجوال;التاريخ\nسارة;0512345678;15/03/2024\n")
    report = import_file(store, "presences.csv", content, "جيزان")
    assert report.imported == 1
    assert store.records[0].city == "جيزان"


def test_import_ville_obligatoire(store):
    content = csv_bytes("name,phone,date\nAli,0512345678,2024-03-15\n")
    for city in ("", "all", "القاهرة"):
        with pytest.raises(ImportStructureError) as exc_info:
            import_file(store, "presences.csv", content, city)
        assert exc_info.value.message == CITY_REQUIRED_MESSAGE


def test_import_duree_hors_plage_ligne_rejetee(store):
    """Un départ au-delà des dates représentables rejette la ligne, pas le lot."""
    rows = [
        ["name", "phone", "date", "duration"],
        ["Ali", "0512345678", "2024-03-15", "3"],
        ["Sara", "0598765432", "2024-03-15", "100000000"],
    ]
    report = import_rows(store, rows, "الرياض")

    assert report.imported == 1
    assert report.skipped == 1
    assert report.errors[0].row == 3
    assert report.errors[0].reason == INVALID_DATE_MESSAGE
    assert len(store.records) == 1
    assert store.records[0].check_out - store.records[0].check_in == timedelta(hours=3)
