"""
Erreurs métier du registre des présences.

Chaque exception porte un message court, en arabe, directement affichable
par l'interface. Les routers les traduisent en codes HTTP.
"""

from typing import List, Sequence


class AttendanceError(Exception):
    """Base des erreurs métier : `message` est destiné à l'utilisateur."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CheckInValidationError(AttendanceError):
    """Saisie d'arrivée invalide (champ manquant, téléphone ou identité mal formés)."""


class ActiveSessionNotFoundError(AttendanceError):
    """Aucune session ouverte aujourd'hui pour ce téléphone dans cette ville."""


class ImportStructureError(AttendanceError):
    """Fichier importé inutilisable : vide, illisible ou colonnes obligatoires absentes."""

    def __init__(self, message: str, missing_columns: Sequence[str] = ()):
        super().__init__(message)
        self.missing_columns: List[str] = list(missing_columns)


class ImportRowError(AttendanceError):
    """Ligne d'import rejetée ; la ligne est ignorée, l'import continue."""

    def __init__(self, row: int, message: str):
        super().__init__(message)
        self.row = row


class NoValidRowsError(AttendanceError):
    """Aucune ligne exploitable dans le fichier : rien n'est enregistré."""

    def __init__(self, message: str, issues: Sequence = ()):
        super().__init__(message)
        self.issues = list(issues)


class PersistenceError(AttendanceError):
    """Échec d'écriture du stockage durable ; l'état en mémoire reste valide."""
