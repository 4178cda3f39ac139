"""
Modèle SQLAlchemy pour la table schools (base distante).
Racine du tenant : chaque classe, élève et présence appartient à une école.
"""

import uuid
from sqlalchemy import Column, DateTime, String, Text, func

from rolecaller.database import Base


class School(Base):
    __tablename__ = "schools"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    email = Column(String(255), nullable=False, index=True)
    password = Column(Text, nullable=False)  # En clair, comme dans l'application d'origine
    address = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
