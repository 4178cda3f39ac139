"""
Schémas Pydantic pour le marquage et la lecture des présences.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

VALID_STATUSES = {"present", "absent", "late"}


class AttendanceMark(BaseModel):
    """Corps de requête du marquage (POST /attendance)."""
    student_id: str
    class_id: str
    date: date
    status: str

    @field_validator("student_id", "class_id")
    @classmethod
    def id_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("L'identifiant ne peut pas être vide.")
        return v.strip()

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: str) -> str:
        if v not in VALID_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {VALID_STATUSES}")
        return v


class AttendanceRecord(BaseModel):
    """
    Présence d'un élève pour un jour donné.
    synced vaut True pour une ligne lue dans la base distante.
    """
    id: str
    student_id: str
    class_id: str
    date: date
    status: str
    teacher_name: Optional[str] = None
    updated_at: datetime
    synced: bool = True

    model_config = {"from_attributes": True}
