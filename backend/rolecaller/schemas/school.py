"""
Schémas Pydantic pour les écoles, la connexion et la session ouverte.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

VALID_ROLES = {"admin", "teacher"}


class SchoolRecord(BaseModel):
    """Enregistrement complet (mot de passe inclus), usage interne aux stores."""
    id: str
    name: str
    email: str
    password: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SchoolResponse(BaseModel):
    """École exposée à l'appelant : jamais de mot de passe."""
    id: str
    name: str
    email: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    email: str
    password: str
    role: str = "admin"

    @field_validator("email")
    @classmethod
    def email_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("L'email ne peut pas être vide.")
        return v.strip()

    @field_validator("role")
    @classmethod
    def valid_role(cls, v: str) -> str:
        if v not in VALID_ROLES:
            raise ValueError(f"Rôle invalide. Valeurs acceptées : {VALID_ROLES}")
        return v


class SessionResponse(BaseModel):
    """Session ouverte sur l'appareil."""
    school: SchoolResponse
    role: str
    opened_at: datetime
    needs_teacher_name: bool = False  # Rôle teacher sans identité enregistrée
