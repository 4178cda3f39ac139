"""
Schémas Pydantic pour l'identité de l'enseignant de l'appareil.
"""

from datetime import datetime

from pydantic import BaseModel, field_validator


class TeacherIdentityUpdate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de l'enseignant ne peut pas être vide.")
        return v.strip()


class TeacherIdentity(BaseModel):
    id: str
    school_id: str
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}
