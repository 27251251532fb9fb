"""
Modèle SQLAlchemy pour le stockage clé-valeur durable.

Deux clés sont utilisées par le registre des présences :
- attendanceData : tableau JSON des enregistrements de présence
- savedUsers     : objet JSON {type: [{name, phone}, ...]} (cache d'autocomplétion)
"""

from sqlalchemy import Column, DateTime, String, Text, func

from attendance_tracker.database import Base


class StorageEntry(Base):
    __tablename__ = "storage_entries"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)          # Document JSON sérialisé
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
