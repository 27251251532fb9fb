"""
Filtrage et indicateurs du tableau de bord.

Tout est recalculé à chaque rafraîchissement à partir du registre : aucune
valeur agrégée n'est stockée.
"""

import math
from typing import Iterable, List, Optional

from attendance_tracker.config import settings
from attendance_tracker.schemas.attendance import ALL_CITIES, AttendanceRecord, ParticipantType
from attendance_tracker.schemas.dashboard import CategoryStats, DashboardKpis, RecordFilter
from attendance_tracker.services.temporal import local_date_key, raw_session_hours


def round_half_up(value: float) -> int:
    """Arrondi commercial (0.5 → 1), et non l'arrondi bancaire de round()."""
    return math.floor(value + 0.5)


def format_hours(value: float) -> str:
    """Affichage d'un total d'heures à une décimale."""
    return f"{value:.1f}"


def filtered_records(records: Iterable[AttendanceRecord], criteria: RecordFilter) -> List[AttendanceRecord]:
    """Ville (ou toutes), téléphone contenant la saisie, puis bornes de dates locales incluses."""
    result = list(records)

    if criteria.city != ALL_CITIES:
        result = [r for r in result if r.city == criteria.city]

    if criteria.phone:
        result = [r for r in result if criteria.phone in r.phone]

    if criteria.date_from is not None or criteria.date_to is not None:
        date_from = criteria.date_from.isoformat() if criteria.date_from else None
        date_to = criteria.date_to.isoformat() if criteria.date_to else None

        def in_range(record: AttendanceRecord) -> bool:
            key = local_date_key(record.check_in)
            if not key:
                return False
            if date_from and key < date_from:
                return False
            if date_to and key > date_to:
                return False
            return True

        result = [r for r in result if in_range(r)]

    return result


def total_hours(records: Iterable[AttendanceRecord]) -> float:
    """Somme des heures brutes des sessions terminées (aucun arrondi par session)."""
    return sum(
        raw_session_hours(record.check_in, record.check_out)
        for record in records
        if record.check_out
    )


def category_stats(records: Iterable[AttendanceRecord], participant_type: ParticipantType) -> CategoryStats:
    """
    Indicateurs d'une catégorie. `records` doit déjà ne contenir que cette catégorie.

    Taux de complétion :
    - stagiaires / تمهير : jours distincts / durée du programme (180 j), plafonné à 100
    - bénévoles : sessions terminées / sessions
    """
    records = list(records)
    total_sessions = len(records)
    completed_sessions = sum(1 for record in records if record.check_out)
    hours = total_hours(records)
    avg_session_hours = round(hours / completed_sessions, 1) if completed_sessions else 0.0

    unique_days = len({
        key for key in (local_date_key(record.check_in) for record in records if record.check_in) if key
    })

    if participant_type is ParticipantType.VOLUNTEER:
        completion_rate = (
            round_half_up(completed_sessions / total_sessions * 100) if total_sessions else 0
        )
    else:
        completion_rate = min(
            round_half_up(unique_days / settings.PROGRAM_EXPECTED_DAYS * 100), 100
        )

    return CategoryStats(
        total_sessions=total_sessions,
        completed_sessions=completed_sessions,
        total_hours=hours,
        avg_session_hours=avg_session_hours,
        unique_days=unique_days,
        completion_rate=completion_rate,
    )


def _stats_for(records: List[AttendanceRecord], participant_type: ParticipantType) -> CategoryStats:
    return category_stats([r for r in records if r.type is participant_type], participant_type)


def dashboard_kpis(records: Iterable[AttendanceRecord], criteria: RecordFilter) -> DashboardKpis:
    """Indicateurs des trois catégories sur l'ensemble filtré."""
    filtered = filtered_records(records, criteria)
    return DashboardKpis(
        volunteers=_stats_for(filtered, ParticipantType.VOLUNTEER),
        trainees=_stats_for(filtered, ParticipantType.TRAINEE),
        preparatory=_stats_for(filtered, ParticipantType.PREPARATORY),
    )


def sort_newest_first(records: Iterable[AttendanceRecord]) -> List[AttendanceRecord]:
    """Tri par arrivée décroissante ; à égalité, l'ordre d'insertion est conservé."""
    return sorted(records, key=lambda record: record.check_in, reverse=True)


def export_records(
    records: Iterable[AttendanceRecord],
    criteria: RecordFilter,
    category: Optional[ParticipantType] = None,
) -> List[AttendanceRecord]:
    """Ensemble filtré, restreint à une catégorie si demandée (base des exports)."""
    result = filtered_records(records, criteria)
    if category is not None:
        result = [r for r in result if r.type is category]
    return result


def table_view(
    records: Iterable[AttendanceRecord],
    criteria: RecordFilter,
    category: Optional[ParticipantType] = None,
) -> List[AttendanceRecord]:
    """
    Lignes du tableau : sans filtre actif, les enregistrements importés sont masqués
    (ils n'apparaissent qu'avec un filtre ville, téléphone ou date).
    """
    result = export_records(records, criteria, category)
    if not criteria.is_active:
        result = [r for r in result if not r.is_imported]
    return sort_newest_first(result)
