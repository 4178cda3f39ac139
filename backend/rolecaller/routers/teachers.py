"""
Router pour l'identité de l'enseignant de l'appareil (une par école).
Le nom est figé sur chaque présence au moment du marquage.
"""

from fastapi import APIRouter, Depends, HTTPException

from rolecaller.dependencies import get_gateway
from rolecaller.schemas.teacher import TeacherIdentity, TeacherIdentityUpdate
from rolecaller.services.gateway import EntityGateway

router = APIRouter(prefix="/api/v1/teachers", tags=["Enseignant"])


@router.get("/{school_id}", response_model=TeacherIdentity, summary="Identité de l'enseignant")
def get_teacher(school_id: str, gateway: EntityGateway = Depends(get_gateway)):
    identity = gateway.get_teacher_identity(school_id)
    if identity is None:
        raise HTTPException(status_code=404, detail="Aucun enseignant enregistré pour cette école.")
    return identity


@router.put("/{school_id}", response_model=TeacherIdentity, summary="Enregistrer le nom de l'enseignant")
def save_teacher(school_id: str, data: TeacherIdentityUpdate, gateway: EntityGateway = Depends(get_gateway)):
    return gateway.save_teacher_identity(school_id, data.name)
