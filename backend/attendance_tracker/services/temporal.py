"""
Utilitaires temporels du registre des présences.

- Clé de jour local (YYYY-MM-DD) : les instants sont stockés en UTC mais le
  "même jour" se juge sur le calendrier du poste (Settings.TIMEZONE).
- Conversion des chiffres indo-arabes (٠-٩ et ۰-۹) ↔ ASCII, aux frontières
  uniquement (lecture des saisies/fichiers, rendu d'affichage).
- Durées de session : affichage borné à zéro, heures brutes pour l'agrégation.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

from attendance_tracker.config import settings

TimestampLike = Union[datetime, str, None]

ABSENT = "—"
LESS_THAN_A_MINUTE = "أقل من دقيقة"

_ARABIC_INDIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"
_EXTENDED_ARABIC_INDIC_DIGITS = "۰۱۲۳۴۵۶۷۸۹"

_TO_ASCII = str.maketrans(
    _ARABIC_INDIC_DIGITS + _EXTENDED_ARABIC_INDIC_DIGITS,
    "0123456789" * 2,
)
_TO_ARABIC_INDIC = str.maketrans("0123456789", _ARABIC_INDIC_DIGITS)


def local_timezone() -> tzinfo:
    return ZoneInfo(settings.TIMEZONE)


def utc_now() -> datetime:
    """Horloge unique de l'application (injectée dans le registre pour les tests)."""
    return datetime.now(timezone.utc)


def to_ascii_digits(text: str) -> str:
    """Remplace les chiffres indo-arabes et persans par des chiffres ASCII."""
    return text.translate(_TO_ASCII)


def to_arabic_digits(value) -> str:
    """Rend les chiffres ASCII d'une valeur en chiffres indo-arabes (affichage)."""
    return str(value).translate(_TO_ARABIC_INDIC)


def parse_timestamp(value: TimestampLike) -> Optional[datetime]:
    """
    Retourne un datetime avec fuseau, ou None si la valeur est absente/invalide.
    Une date sans fuseau est interprétée comme heure locale du poste.
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_timezone())
    return value


def to_local(value: TimestampLike) -> Optional[datetime]:
    timestamp = parse_timestamp(value)
    if timestamp is None:
        return None
    return timestamp.astimezone(local_timezone())


def local_date_key(value: TimestampLike) -> str:
    """Clé YYYY-MM-DD du jour local ; chaîne vide si l'instant est invalide."""
    local = to_local(value)
    if local is None:
        return ""
    return local.date().isoformat()


def _render_digits(text: str, arabic_digits: Optional[bool]) -> str:
    if arabic_digits is None:
        arabic_digits = settings.ARABIC_INDIC_DIGITS
    return to_arabic_digits(text) if arabic_digits else text


def format_display_date(value: TimestampLike, arabic_digits: Optional[bool] = None) -> str:
    """JJ/MM/AAAA en heure locale ; "—" si absent, valeur brute si illisible."""
    if value is None or value == "":
        return ABSENT
    local = to_local(value)
    if local is None:
        return str(value)
    return _render_digits(f"{local.day:02d}/{local.month:02d}/{local.year}", arabic_digits)


def format_display_time(value: TimestampLike, arabic_digits: Optional[bool] = None) -> str:
    """HH:MM (24 h) en heure locale ; "—" si absent, valeur brute si illisible."""
    if value is None or value == "":
        return ABSENT
    local = to_local(value)
    if local is None:
        return str(value)
    return _render_digits(f"{local.hour:02d}:{local.minute:02d}", arabic_digits)


def session_duration(check_in: TimestampLike, check_out: TimestampLike) -> Optional[timedelta]:
    """Durée départ - arrivée, bornée à zéro (décalage d'horloge). None si incomplète."""
    start = parse_timestamp(check_in)
    end = parse_timestamp(check_out)
    if start is None or end is None:
        return None
    return max(end - start, timedelta(0))


def format_duration(
    check_in: TimestampLike,
    check_out: TimestampLike,
    arabic_digits: Optional[bool] = None,
) -> str:
    """Ex. "٢ ساعة ٣٠ دقيقة" ; "أقل من دقيقة" sous la minute ; "—" si session ouverte."""
    duration = session_duration(check_in, check_out)
    if duration is None:
        return ABSENT

    hours, minutes = divmod(int(duration.total_seconds() // 60), 60)
    if hours == 0 and minutes == 0:
        return LESS_THAN_A_MINUTE

    parts = []
    if hours > 0:
        parts.append(f"{_render_digits(str(hours), arabic_digits)} ساعة")
    if minutes > 0:
        parts.append(f"{_render_digits(str(minutes), arabic_digits)} دقيقة")
    return " ".join(parts)


def raw_session_hours(check_in: TimestampLike, check_out: TimestampLike) -> float:
    """Heures décimales non bornées ; 0 si la session est ouverte ou illisible."""
    if not check_out:
        return 0.0
    start = parse_timestamp(check_in)
    end = parse_timestamp(check_out)
    if start is None or end is None:
        return 0.0
    return (end - start).total_seconds() / 3600
