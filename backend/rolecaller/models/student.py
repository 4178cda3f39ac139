"""
Modèle SQLAlchemy pour la table students (base distante).
Un élève appartient à une école et à au plus une classe (class_id nullable).
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func

from rolecaller.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    school_id = Column(String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(String(36), ForeignKey("classes.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(Text, nullable=False)
    grade = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
