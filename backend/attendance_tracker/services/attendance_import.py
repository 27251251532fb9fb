"""
Service d'import des présences depuis un fichier CSV ou XLSX.

Tous les enregistrements d'un fichier sont rattachés à une seule ville,
choisie par l'opérateur avant l'import.

Règles :
- En-têtes reconnus en arabe ou en anglais (insensibles à la casse et aux espaces),
  premier alias trouvé retenu
- Colonnes obligatoires : nom, téléphone, date → sinon l'import entier est refusé
- Colonnes optionnelles : identité, type, opportunité, heure, durée
- Chaque ligne est traitée indépendamment : une ligne invalide est ignorée et
  signalée dans le rapport, sans bloquer les autres
- Le départ est calculé : arrivée + durée (8 h par défaut, arrivée à 08:00 par défaut)
- Rien n'est enregistré si aucune ligne n'est valide
"""

import logging
import math
import re
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from attendance_tracker.config import settings
from attendance_tracker.exceptions import (
    ImportRowError,
    ImportStructureError,
    NoValidRowsError,
)
from attendance_tracker.schemas.attendance import CITIES, AttendanceRecord, ParticipantType
from attendance_tracker.schemas.imports import ImportReport, ImportRowIssue
from attendance_tracker.services.date_normalizer import (
    Cell,
    UnparseableDateTimeError,
    combine_date_and_time,
)
from attendance_tracker.services.record_store import AttendanceStore
from attendance_tracker.services.table_reader import Table, read_table
from attendance_tracker.services.temporal import local_date_key, raw_session_hours, to_ascii_digits

logger = logging.getLogger(__name__)

# Alias acceptés par colonne logique ; le premier sert de nom dans les messages d'erreur
COLUMN_ALIASES: Dict[str, List[str]] = {
    "name": ["الاسم", "name", "full name"],
    "phone": ["رقم الجوال", "phone", "رقم جوال", "mobile", "phone number"],
    "national_id": ["رقم الهوية الوطنية", "nationalid", "رقم الهوية", "هوية وطنية", "national id", "national_id"],
    "type": ["النوع", "type", "نوع"],
    "opportunity": ["الفرصة التطوعية", "opportunity", "فرصة تطوعية", "الفرصة"],
    "date": ["التاريخ", "date", "تاريخ"],
    "time": ["الساعة", "time", "وقت", "ساعة"],
    "duration": ["المدة", "duration", "مدة", "الساعات", "hours"],
}
REQUIRED_COLUMNS = ("name", "phone", "date")

DEFAULT_OPPORTUNITY = "غير محدد"

CITY_REQUIRED_MESSAGE = "الرجاء اختيار فرع محدد من الفلاتر قبل استيراد الملف"
EMPTY_FILE_MESSAGE = "الملف فارغ أو لا يحتوي على صفوف بيانات"
MISSING_COLUMNS_MESSAGE = "الملف المستورد يفتقد الأعمدة المطلوبة: {columns}"
MISSING_ROW_DATA_MESSAGE = "بيانات ناقصة (الاسم، رقم الجوال، التاريخ)"
UNKNOWN_TYPE_MESSAGE = "نوع غير معروف: {value}"
INVALID_DATE_MESSAGE = "تاريخ أو وقت غير صالح"
NO_VALID_ROWS_MESSAGE = (
    "لم يتم العثور على بيانات صالحة في الملف. تأكد من أن الصفوف تحتوي على البيانات "
    "المطلوبة (الاسم، رقم الجوال، التاريخ) وأن التواريخ بالتنسيق الصحيح."
)

LEADING_NUMBER_REGEX = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)")

ColumnIndices = Dict[str, Optional[int]]


def _normalize_header(raw: Cell) -> str:
    """Normalise un nom de colonne : minuscules, espaces réduits."""
    return " ".join(str(raw if raw is not None else "").split()).lower()


def _is_number(value: Cell) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_blank(value: Cell) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _cell(row: Sequence[Cell], index: Optional[int]) -> Cell:
    if index is None or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else value


def _text(value: Cell) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _phone_text(value: Cell) -> str:
    """Téléphone d'une cellule ; le 0 initial perdu par le tableur (5XXXXXXXX) est restauré."""
    phone = to_ascii_digits(_text(value))
    if len(phone) == 9 and phone.isdigit() and phone.startswith("5"):
        phone = "0" + phone
    return phone


def _format_hours(hours: float) -> str:
    return str(int(hours)) if float(hours).is_integer() else str(hours)


def parse_duration(value: Cell) -> float:
    """Durée en heures (finie, > 0) ; sinon la durée par défaut. "3 ساعات" → 3."""
    default = settings.DEFAULT_IMPORT_DURATION_HOURS
    if _is_number(value):
        hours = float(value)
    else:
        match = LEADING_NUMBER_REGEX.match(to_ascii_digits(_text(value)))
        if not match:
            return default
        hours = float(match.group(1))
    return hours if math.isfinite(hours) and hours > 0 else default


def resolve_columns(header_row: Sequence[Cell]) -> ColumnIndices:
    """
    Associe chaque colonne logique à son index dans l'en-tête (None si absente).
    Lève ImportStructureError si une colonne obligatoire manque.
    """
    headers = [_normalize_header(cell) for cell in header_row]

    indices: ColumnIndices = {}
    for column, aliases in COLUMN_ALIASES.items():
        indices[column] = next(
            (headers.index(alias) for alias in aliases if alias in headers),
            None,
        )

    missing = [COLUMN_ALIASES[column][0] for column in REQUIRED_COLUMNS if indices[column] is None]
    if missing:
        logger.error("Import refusé, colonnes manquantes : %s", missing)
        raise ImportStructureError(
            MISSING_COLUMNS_MESSAGE.format(columns="، ".join(missing)),
            missing_columns=missing,
        )
    return indices


def build_record(
    row: Sequence[Cell],
    indices: ColumnIndices,
    city: str,
    record_id: int,
    row_number: int,
) -> AttendanceRecord:
    """Construit l'enregistrement d'une ligne, ou lève ImportRowError."""
    name = _text(_cell(row, indices["name"]))
    phone = _phone_text(_cell(row, indices["phone"]))
    date_cell = _cell(row, indices["date"])
    if not name or not phone or _is_blank(date_cell):
        raise ImportRowError(row_number, MISSING_ROW_DATA_MESSAGE)

    participant_type = ParticipantType.VOLUNTEER
    raw_type = _text(_cell(row, indices["type"]))
    if raw_type:
        participant_type = ParticipantType.parse(raw_type)
        if participant_type is None:
            raise ImportRowError(row_number, UNKNOWN_TYPE_MESSAGE.format(value=raw_type))

    duration_hours = parse_duration(_cell(row, indices["duration"]))

    time_cell = _cell(row, indices["time"])
    if _is_blank(time_cell):
        time_cell = settings.DEFAULT_IMPORT_HOUR

    try:
        check_in = combine_date_and_time(date_cell, time_cell)
    except UnparseableDateTimeError as exc:
        logger.debug("Ligne %d : %s", row_number, exc)
        raise ImportRowError(row_number, INVALID_DATE_MESSAGE) from exc

    is_volunteer = participant_type is ParticipantType.VOLUNTEER
    opportunity = ""
    national_id = ""
    if is_volunteer:
        opportunity = _text(_cell(row, indices["opportunity"])) or DEFAULT_OPPORTUNITY
        national_id = to_ascii_digits(_text(_cell(row, indices["national_id"])))

    try:
        check_out = check_in + timedelta(hours=duration_hours)
    except (OverflowError, ValueError) as exc:
        # Départ hors de la plage des dates représentables
        logger.debug("Ligne %d : durée %s : %s", row_number, duration_hours, exc)
        raise ImportRowError(row_number, INVALID_DATE_MESSAGE) from exc

    return AttendanceRecord(
        id=record_id,
        city=city,
        name=name,
        phone=phone,
        type=participant_type,
        opportunity=opportunity,
        national_id=national_id,
        check_in=check_in,
        check_out=check_out,
        notes=f"تم الاستيراد من ملف ({_format_hours(duration_hours)} ساعة)",
        is_imported=True,
    )


def import_rows(store: AttendanceStore, rows: Table, city: str) -> ImportReport:
    """
    Traite un tableau déjà décodé et enregistre les lignes valides en un seul lot.
    Lève ImportStructureError (fichier vide, colonnes manquantes) ou
    NoValidRowsError (aucune ligne exploitable, rien n'est enregistré).
    """
    if len(rows) < 2:
        raise ImportStructureError(EMPTY_FILE_MESSAGE)

    indices = resolve_columns(rows[0])

    staged: List[AttendanceRecord] = []
    issues: List[ImportRowIssue] = []
    total_rows = 0

    # Identifiants réservés jusqu'à l'ajout du lot
    with store.lock:
        next_id = store.next_id()
        for row_number, row in enumerate(rows[1:], start=2):  # ligne 1 = en-tête
            if all(_is_blank(cell) for cell in row):
                continue
            total_rows += 1

            try:
                record = build_record(row, indices, city, next_id, row_number)
            except ImportRowError as exc:
                logger.warning("Ligne %d ignorée : %s", row_number, exc.message)
                issues.append(ImportRowIssue(row=row_number, reason=exc.message))
                continue

            staged.append(record)
            next_id += 1

        if not staged:
            logger.warning("Import %s : aucune ligne valide sur %d", city, total_rows)
            raise NoValidRowsError(NO_VALID_ROWS_MESSAGE, issues)

        store.add_records(staged)

    report = _build_report(city, total_rows, staged, issues)
    logger.info(
        "Import %s : %d lignes, %d importées, %d ignorées, %.1f heures",
        city, report.total_rows, report.imported, report.skipped, report.total_hours,
    )
    return report


def import_file(store: AttendanceStore, filename: str, content: bytes, city: str) -> ImportReport:
    """Décode le fichier puis importe ses lignes pour la ville indiquée."""
    if city not in CITIES:
        raise ImportStructureError(CITY_REQUIRED_MESSAGE)

    rows = read_table(filename, content)
    return import_rows(store, rows, city)


def _build_report(
    city: str,
    total_rows: int,
    records: List[AttendanceRecord],
    issues: List[ImportRowIssue],
) -> ImportReport:
    by_type: Dict[str, int] = {}
    for record in records:
        by_type[record.type.value] = by_type.get(record.type.value, 0) + 1

    return ImportReport(
        city=city,
        total_rows=total_rows,
        imported=len(records),
        skipped=len(issues),
        total_hours=sum(raw_session_hours(r.check_in, r.check_out) for r in records),
        by_type=by_type,
        unique_days=len({local_date_key(r.check_in) for r in records}),
        errors=issues,
    )
