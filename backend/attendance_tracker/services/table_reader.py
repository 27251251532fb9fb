"""
Décodage des fichiers importés en tableau 2D : ligne d'en-tête + lignes de données.

Chaque cellule est une chaîne (nettoyée), un nombre, ou un objet date/heure
natif quand le classeur XLSX le fournit. C'est le contrat d'entrée du moteur
d'import (attendance_import).
"""

import csv
import io
import logging
import os
import zipfile
from typing import List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from attendance_tracker.exceptions import ImportStructureError
from attendance_tracker.services.date_normalizer import Cell

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = {".csv", ".txt"}
XLSX_EXTENSIONS = {".xlsx", ".xlsm"}

UNSUPPORTED_FILE_MESSAGE = "نوع ملف غير مدعوم. الرجاء تحميل ملف .csv أو .xlsx"
UNREADABLE_FILE_MESSAGE = "لا يمكن قراءة الملف"

Table = List[List[Cell]]


def _detect_separator(sample: str) -> str:
    """Détecte le séparateur CSV (virgule, point-virgule ou tabulation)."""
    commas, semicolons, tabs = sample.count(","), sample.count(";"), sample.count("\t")
    if tabs > max(commas, semicolons):
        return "\t"
    if semicolons > commas:
        return ";"
    return ","


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")  # utf-8-sig gère le BOM Excel
    except UnicodeDecodeError:
        # Exports Excel arabes "CSV (séparateur : virgule)" sous Windows
        logger.info("Fichier CSV non UTF-8, lecture en Windows-1256")
        return content.decode("cp1256", errors="replace")


def parse_csv(content: bytes) -> Table:
    """Parse un CSV (champs entre guillemets gérés) en lignes de chaînes nettoyées."""
    text = _decode(content)
    lines = text.splitlines()
    separator = _detect_separator(lines[0] if lines else "")

    reader = csv.reader(io.StringIO(text), delimiter=separator)
    try:
        return [[cell.strip() for cell in row] for row in reader]
    except csv.Error as exc:
        raise ImportStructureError(UNREADABLE_FILE_MESSAGE) from exc


def _xlsx_cell(value) -> Cell:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return value


def parse_xlsx(content: bytes) -> Table:
    """Lit la première feuille d'un classeur XLSX ; dates et nombres restent typés."""
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ImportStructureError(UNREADABLE_FILE_MESSAGE) from exc

    try:
        sheet = workbook.worksheets[0]
        return [
            [_xlsx_cell(value) for value in row]
            for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()


def read_table(filename: str, content: bytes) -> Table:
    """Choisit le décodeur selon l'extension du fichier."""
    extension = os.path.splitext(filename or "")[1].lower()
    if extension in CSV_EXTENSIONS:
        return parse_csv(content)
    if extension in XLSX_EXTENSIONS:
        return parse_xlsx(content)
    raise ImportStructureError(UNSUPPORTED_FILE_MESSAGE)
