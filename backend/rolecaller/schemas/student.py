"""
Schémas Pydantic pour les élèves.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator


class StudentCreate(BaseModel):
    """Schéma de création manuelle d'un élève (POST /students)."""
    name: str
    school_id: str
    class_id: Optional[str] = None
    grade: Optional[str] = None

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()


class StudentUpdate(BaseModel):
    """Schéma de mise à jour d'un élève (PUT /students/{id})."""
    name: Optional[str] = None
    class_id: Optional[str] = None
    grade: Optional[str] = None

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> str:
        # Appelé seulement si le champ est fourni : null explicite refusé
        if v is None or not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()


class StudentResponse(BaseModel):
    id: str
    school_id: str
    class_id: Optional[str] = None
    name: str
    grade: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StudentImportRow(BaseModel):
    """Représente une ligne valide du CSV après parsing."""
    name: str
    grade: Optional[str] = None
    class_name: Optional[str] = None  # nom de la classe (optionnel, colonne CSV)


class ImportError(BaseModel):
    """Détail d'une ligne rejetée lors de l'import."""
    row: int
    content: str
    reason: str


class StudentImportReport(BaseModel):
    """Rapport retourné après un import CSV."""
    total_rows: int
    inserted: int
    rejected: int
    duplicates_in_file: int
    classes_created: int = 0
    errors: List[ImportError]
