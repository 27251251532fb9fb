"""
Schémas Pydantic pour l'import de présences (CSV / XLSX).
"""

from typing import Dict, List

from pydantic import BaseModel


class ImportRowIssue(BaseModel):
    """Détail d'une ligne ignorée lors de l'import."""
    row: int          # numéro de ligne dans le fichier (1 = en-tête)
    reason: str


class ImportReport(BaseModel):
    """Rapport retourné après un import réussi (au moins une ligne enregistrée)."""
    city: str
    total_rows: int
    imported: int
    skipped: int
    total_hours: float
    by_type: Dict[str, int]
    unique_days: int
    errors: List[ImportRowIssue]
