# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant l'appel à create_all().

from attendance_tracker.models.storage_entry import StorageEntry  # noqa: F401
