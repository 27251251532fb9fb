"""
Accès au tableau de bord administrateur.

Simple filtre d'interface côté poste : les identifiants sont en configuration
et aucune session n'est créée.
"""

import hmac
import logging

from attendance_tracker.config import settings

logger = logging.getLogger(__name__)


def is_admin(username: str, password: str) -> bool:
    """Vrai si la paire correspond à l'un des comptes configurés."""
    username = (username or "").strip()
    for credential in settings.ADMIN_CREDENTIALS:
        if (
            credential.username == username
            and hmac.compare_digest(credential.password.encode("utf-8"), (password or "").encode("utf-8"))
        ):
            logger.info("Accès tableau de bord accordé : %s", username)
            return True

    logger.warning("Accès tableau de bord refusé : %s", username)
    return False
