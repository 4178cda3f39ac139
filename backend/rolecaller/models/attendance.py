"""
Modèle SQLAlchemy pour les présences (base distante).

Contrainte d'unicité (student_id, date) : cible du ON CONFLICT utilisé
par le push. updated_at est le timestamp local du marquage (last-write-wins),
jamais l'heure de réception côté serveur.
"""

import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, UniqueConstraint

from rolecaller.database import Base


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("student_id", "date", name="attendance_student_id_date_unique"),
        Index("idx_attendance_class_date", "class_id", "date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(10), nullable=False)  # present, absent, late
    teacher_name = Column(String(255), nullable=True)
    updated_at = Column(DateTime, nullable=False)
