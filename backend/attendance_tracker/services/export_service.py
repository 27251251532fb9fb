"""
Exports des présences et des indicateurs : CSV (avec BOM pour Excel) et PDF.

L'ordre des colonnes et les valeurs dérivées (date, heure, durée, "—" pour
une valeur absente) font partie du contrat ; la mise en page PDF est indicative.
"""

import csv
import io
from typing import Iterable, List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A3, A4, landscape, portrait
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from xml.sax.saxutils import escape

from attendance_tracker.config import settings
from attendance_tracker.schemas.attendance import AttendanceRecord, ParticipantType
from attendance_tracker.schemas.dashboard import DashboardKpis
from attendance_tracker.services.query_service import format_hours, sort_newest_first
from attendance_tracker.services.temporal import (
    ABSENT,
    format_display_date,
    format_display_time,
    format_duration,
    local_date_key,
    utc_now,
)

BOM = "\ufeff"

CSV_HEADER = [
    "الفرع", "الاسم", "رقم الجوال", "رقم الهوية الوطنية", "النوع", "الفرصة التطوعية",
    "تاريخ الدخول", "وقت الدخول", "تاريخ الخروج", "وقت الخروج", "المدة", "ملاحظات",
]
REPORT_HEADER = [
    "الفرع", "الاسم", "الجوال", "الهوية", "النوع", "الفرصة",
    "تاريخ الدخول", "وقت الدخول", "تاريخ الخروج", "وقت الخروج", "المدة", "ملاحظات",
]
KPI_HEADER = ["الفئة", "إجمالي الحضور", "الأيام", "إجمالي الساعات"]

NOT_CHECKED_OUT_CSV = "لم يخرج بعد"
NOT_CHECKED_OUT_REPORT = "لم يخرج"

RECORDS_REPORT_TITLE = "سجل الحضور"
KPI_REPORT_TITLE = "تحليلات الحضور"

REPORT_FONT_NAME = "ReportFont"
HEADER_COLOR = colors.HexColor("#546B68")


def export_filename(prefix: str, extension: str) -> str:
    """Ex. attendance_data_2024-03-15.csv (jour local)."""
    return f"{prefix}_{local_date_key(utc_now())}.{extension}"


# --- Lignes ---

def csv_row(record: AttendanceRecord) -> List[str]:
    checked_out = record.check_out is not None
    return [
        record.city,
        record.name,
        record.phone,
        record.national_id,
        record.type.value,
        record.opportunity,
        format_display_date(record.check_in),
        format_display_time(record.check_in),
        format_display_date(record.check_out) if checked_out else NOT_CHECKED_OUT_CSV,
        format_display_time(record.check_out) if checked_out else ABSENT,
        format_duration(record.check_in, record.check_out),
        record.notes,
    ]


def report_row(record: AttendanceRecord) -> List[str]:
    """Ligne du rapport imprimable : identité et opportunité uniquement pour les bénévoles."""
    is_volunteer = record.type is ParticipantType.VOLUNTEER
    checked_out = record.check_out is not None
    return [
        record.city,
        record.name,
        record.phone,
        (record.national_id or ABSENT) if is_volunteer else ABSENT,
        record.type.value,
        (record.opportunity or ABSENT) if is_volunteer else ABSENT,
        format_display_date(record.check_in),
        format_display_time(record.check_in),
        format_display_date(record.check_out) if checked_out else NOT_CHECKED_OUT_REPORT,
        format_display_time(record.check_out) if checked_out else ABSENT,
        format_duration(record.check_in, record.check_out),
        record.notes,
    ]


def report_rows(records: Iterable[AttendanceRecord]) -> List[List[str]]:
    """En-tête + lignes du rapport, de la plus récente à la plus ancienne."""
    return [REPORT_HEADER] + [report_row(record) for record in sort_newest_first(records)]


def kpi_rows(kpis: DashboardKpis) -> List[List[str]]:
    rows = [KPI_HEADER]
    for label, stats in (
        ("المتطوعين", kpis.volunteers),
        ("المتدربين", kpis.trainees),
        ("التمهير", kpis.preparatory),
    ):
        rows.append([label, str(stats.total_sessions), str(stats.unique_days), format_hours(stats.total_hours)])
    return rows


# --- CSV ---

def records_to_csv(records: Iterable[AttendanceRecord]) -> str:
    """CSV des présences, toutes les cellules entre guillemets, précédé du BOM UTF-8."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(csv_row(record) for record in records)
    return BOM + buffer.getvalue()


def kpis_to_csv(kpis: DashboardKpis) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(kpi_rows(kpis))
    return BOM + buffer.getvalue()


# --- PDF ---

def _report_font() -> str:
    """Police TTF configurée (glyphes arabes) ou Helvetica par défaut."""
    if not settings.PDF_FONT_PATH:
        return "Helvetica"
    if REPORT_FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(REPORT_FONT_NAME, settings.PDF_FONT_PATH))
    return REPORT_FONT_NAME


def _build_pdf(title: str, rows: List[List[str]], pagesize, font_size: int) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=pagesize, title=title,
        leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18,
    )
    font = _report_font()
    title_style = ParagraphStyle(
        "ReportTitle", parent=getSampleStyleSheet()["Heading2"], fontName=font, alignment=1,
    )

    table = Table(rows, repeatRows=1)
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), font),
        ("FONTSIZE", (0, 0), (-1, -1), font_size),
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.3, colors.HexColor("#DDDDDD")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.HexColor("#F9F9F9"), colors.white]),
    ]))

    doc.build([Paragraph(escape(title), title_style), Spacer(1, 10), table])
    return buffer.getvalue()


def records_to_pdf(records: Iterable[AttendanceRecord]) -> bytes:
    """Rapport des présences, A3 paysage."""
    return _build_pdf(RECORDS_REPORT_TITLE, report_rows(records), landscape(A3), font_size=8)


def kpis_to_pdf(kpis: DashboardKpis) -> bytes:
    """Rapport des indicateurs par catégorie, A4 portrait."""
    return _build_pdf(KPI_REPORT_TITLE, kpi_rows(kpis), portrait(A4), font_size=12)
