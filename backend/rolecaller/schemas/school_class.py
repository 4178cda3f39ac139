"""
Schémas Pydantic pour les classes scolaires.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class ClassCreate(BaseModel):
    name: str
    school_id: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de la classe ne peut pas être vide.")
        return v.strip()


class ClassResponse(BaseModel):
    id: str
    school_id: str
    name: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
