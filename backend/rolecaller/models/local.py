"""
Tables du cache local SQLite (appareil de l'enseignant).

Miroir d'un sous-ensemble de la base distante, plus :
- attendance_local.synced : seul le LocalStore écrit ce drapeau ;
- teachers_local : une identité d'enseignant au plus par école ;
- sync_meta : état de l'appareil (dernier pull, session ouverte).

Les identifiants sont ceux fournis par la base distante : jamais renumérotés.
"""

from sqlalchemy import Boolean, Column, Date, DateTime, Index, String, Text, UniqueConstraint

from rolecaller.database import LocalBase


class SchoolLocal(LocalBase):
    __tablename__ = "schools_local"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(String(255), nullable=False, index=True)
    password = Column(Text, nullable=False)  # Stocké pour la connexion hors-ligne
    address = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=True)


class ClassLocal(LocalBase):
    __tablename__ = "classes_local"

    id = Column(String(36), primary_key=True)
    school_id = Column(String(36), nullable=False, index=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=True)


class StudentLocal(LocalBase):
    __tablename__ = "students_local"
    __table_args__ = (
        Index("idx_school", "school_id"),
        Index("idx_class", "class_id"),
    )

    id = Column(String(36), primary_key=True)
    school_id = Column(String(36), nullable=False)
    class_id = Column(String(36), nullable=True)
    name = Column(Text, nullable=False)
    grade = Column(String(50), nullable=True)
    created_at = Column(DateTime, nullable=True)


class AttendanceLocal(LocalBase):
    __tablename__ = "attendance_local"
    __table_args__ = (
        UniqueConstraint("student_id", "date", name="unique_student_date"),
        Index("idx_attendance_class_date", "class_id", "date"),
        Index("idx_attendance_synced", "synced"),
    )

    id = Column(String(36), primary_key=True)
    student_id = Column(String(36), nullable=False)
    class_id = Column(String(36), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(10), nullable=False)
    teacher_name = Column(String(255), nullable=True)  # Instantané au moment du marquage
    updated_at = Column(DateTime, nullable=False)
    synced = Column(Boolean, nullable=False, default=False)


class TeacherLocal(LocalBase):
    __tablename__ = "teachers_local"

    id = Column(String(36), primary_key=True)
    school_id = Column(String(36), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)


class SyncMeta(LocalBase):
    """Paires clé/valeur de l'appareil (last_sync, school_id, school_role)."""
    __tablename__ = "sync_meta"

    key = Column(String(50), primary_key=True)
    value = Column(Text, nullable=True)
