"""
Normalisation des cellules date / heure des fichiers importés.

Les cellules arrivent sous des formes hétérogènes selon le fichier :
- objets natifs date / datetime / time (cellules XLSX typées, via openpyxl)
- numéros de série tableur (jours depuis l'époque Excel) et fractions de jour
- chaînes "YYYY-MM-DD", "JJ/MM/AAAA", "H:MM [AM|PM|ص|م]", en chiffres
  ASCII ou indo-arabes

Le résultat est toujours un instant avec fuseau : le jour calendaire résolu,
à l'heure/minute murale locale (Settings.TIMEZONE), secondes à zéro.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple, Union

from attendance_tracker.services.temporal import local_timezone, to_ascii_digits

Cell = Union[str, int, float, date, datetime, time, None]

# Époque du système de dates 1900 d'Excel. Le 30/12/1899 (et non le 01/01/1900)
# absorbe le faux 29/02/1900 d'Excel : série 25569 = 1970-01-01, 45000 = 2023-03-15.
# Le jour d'une série ne dépend d'aucun fuseau : seule la partie entière est lue.
EXCEL_EPOCH = date(1899, 12, 30)

# En dessous (avant 1970-01-01), un nombre n'est pas considéré comme une date.
EXCEL_SERIAL_MIN = 25568

SECONDS_PER_DAY = 86400

ISO_DATE_REGEX = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
DMY_DATE_REGEX = re.compile(r"^(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2,4})$")
TIME_REGEX = re.compile(
    r"^(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\s*(AM|PM|ص|م))?$",
    re.IGNORECASE,
)
NUMBER_REGEX = re.compile(r"^\d+(?:\.\d+)?$")

PM_MARKERS = {"pm", "م"}
AM_MARKERS = {"am", "ص"}


class UnparseableDateTimeError(ValueError):
    """Cellule date ou heure impossible à interpréter : la ligne est ignorée."""


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _normalize_text(value: str) -> str:
    return to_ascii_digits(value.strip())


def excel_serial_to_date(serial: float) -> date:
    """
    Convertit un numéro de série tableur en date calendaire.
    La partie fractionnaire (heure) est ignorée. Lève si serial <= EXCEL_SERIAL_MIN.
    """
    if serial <= EXCEL_SERIAL_MIN:
        raise UnparseableDateTimeError(f"Numéro de série de date invalide : {serial}")
    try:
        return EXCEL_EPOCH + timedelta(days=int(serial))
    except (ValueError, OverflowError) as exc:
        raise UnparseableDateTimeError(f"Numéro de série de date invalide : {serial}") from exc


def _build_date(year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise UnparseableDateTimeError(f"Date inexistante : {day}/{month}/{year}") from exc


def parse_date_cell(value: Cell) -> date:
    """
    Résout le jour calendaire d'une cellule date, dans l'ordre :
    objet natif → série tableur → YYYY-MM-DD → J/M/A → ISO date-heure.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(local_timezone())
        return value.date()
    if isinstance(value, date):
        return value
    if _is_number(value):
        return excel_serial_to_date(value)
    if not isinstance(value, str):
        raise UnparseableDateTimeError(f"Type de date non reconnu : {type(value).__name__}")

    text = _normalize_text(value)
    if not text:
        raise UnparseableDateTimeError("Date vide")

    if NUMBER_REGEX.match(text):
        return excel_serial_to_date(float(text))

    match = ISO_DATE_REGEX.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build_date(year, month, day)

    match = DMY_DATE_REGEX.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        if year < 100:
            year += 2000
        return _build_date(year, month, day)

    try:
        return parse_date_cell(datetime.fromisoformat(text))
    except ValueError as exc:
        raise UnparseableDateTimeError(f"Format de date non reconnu : {value}") from exc


def _time_from_number(value: float) -> Tuple[int, int]:
    # Entier 1-24 : heure pleine. 0-1 : fraction de jour tableur.
    if 1 <= value <= 24 and float(value).is_integer():
        return int(value), 0
    if 0 <= value <= 1:
        total_seconds = round(value * SECONDS_PER_DAY)
        return total_seconds // 3600, (total_seconds % 3600) // 60
    raise UnparseableDateTimeError(f"Valeur horaire invalide : {value}")


def _time_from_text(text: str) -> Tuple[int, int]:
    match = TIME_REGEX.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        marker = (match.group(4) or "").lower()
        if marker in PM_MARKERS and hours < 12:
            hours += 12
        elif marker in AM_MARKERS and hours == 12:
            hours = 0
        if hours > 24 or minutes > 59:
            raise UnparseableDateTimeError(f"Heure hors limites : {text}")
        return hours, minutes

    if NUMBER_REGEX.match(text):
        return _time_from_number(float(text))
    raise UnparseableDateTimeError(f"Format d'heure non reconnu : {text}")


def parse_time_cell(value: Cell) -> Tuple[int, int]:
    """Retourne (heure, minute) d'une cellule heure ; 24 est accepté (minuit suivant)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(local_timezone())
        return value.hour, value.minute
    if isinstance(value, time):
        return value.hour, value.minute
    if _is_number(value):
        return _time_from_number(value)
    if isinstance(value, str):
        text = _normalize_text(value)
        if text:
            return _time_from_text(text)
    raise UnparseableDateTimeError(f"Valeur horaire non reconnue : {value!r}")


def combine_date_and_time(date_value: Cell, time_value: Cell) -> datetime:
    """
    Combine une cellule date et une cellule heure en un instant UTC.
    L'heure est appliquée en heure murale locale au jour résolu (secondes à 0).
    Lève UnparseableDateTimeError si l'une des deux cellules est illisible.
    """
    day = parse_date_cell(date_value)
    hours, minutes = parse_time_cell(time_value)

    local_midnight = datetime(day.year, day.month, day.day, tzinfo=local_timezone())
    local_value = local_midnight + timedelta(hours=hours, minutes=minutes)
    return local_value.astimezone(timezone.utc)
