"""
Router pour la gestion des classes scolaires.
Lecture depuis le cache local (repli distant si vide et en ligne) ; écritures en ligne uniquement.
"""

from typing import List

from fastapi import APIRouter, Depends

from rolecaller.dependencies import get_gateway
from rolecaller.schemas.school_class import ClassCreate, ClassResponse
from rolecaller.services.gateway import EntityGateway

router = APIRouter(prefix="/api/v1/classes", tags=["Classes"])


@router.get("", response_model=List[ClassResponse], summary="Lister les classes")
def list_classes(school_id: str, gateway: EntityGateway = Depends(get_gateway)):
    """Retourne les classes de l'école ; liste vide hors-ligne si rien n'a été téléchargé."""
    return gateway.get_classes(school_id)


@router.post("", response_model=ClassResponse, status_code=201, summary="Créer une classe")
def create_class(data: ClassCreate, gateway: EntityGateway = Depends(get_gateway)):
    return gateway.add_class(data.name, data.school_id)


@router.delete("/{class_id}", status_code=204, summary="Supprimer une classe")
def delete_class(class_id: str, gateway: EntityGateway = Depends(get_gateway)):
    gateway.delete_class(class_id)
