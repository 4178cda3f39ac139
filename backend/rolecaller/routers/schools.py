"""
Router pour les écoles et la session (connexion admin / enseignant).
"""

from typing import List

from fastapi import APIRouter, Depends

from rolecaller.dependencies import get_gateway
from rolecaller.schemas.school import LoginRequest, SchoolResponse, SessionResponse
from rolecaller.services.gateway import EntityGateway

router = APIRouter(prefix="/api/v1", tags=["Écoles"])


def _session_response(gateway: EntityGateway) -> SessionResponse:
    session = gateway.require_session()
    needs_teacher_name = (
        session.role == "teacher"
        and gateway.get_teacher_identity(session.school.id) is None
    )
    return SessionResponse(
        school=session.school,
        role=session.role,
        opened_at=session.opened_at,
        needs_teacher_name=needs_teacher_name,
    )


@router.get("/schools", response_model=List[SchoolResponse], summary="Lister les écoles")
def list_schools(gateway: EntityGateway = Depends(get_gateway)):
    """Liste disponible uniquement en ligne (503 hors-ligne)."""
    return gateway.get_schools()


@router.post("/auth/login", response_model=SessionResponse, summary="Se connecter")
def login(data: LoginRequest, gateway: EntityGateway = Depends(get_gateway)):
    """
    Connexion par email + mot de passe de l'école.
    Hors-ligne, la vérification se fait sur le cache local (école déjà téléchargée).
    """
    gateway.login(data.email, data.password, data.role)
    return _session_response(gateway)


@router.post("/auth/logout", status_code=204, summary="Se déconnecter")
def logout(gateway: EntityGateway = Depends(get_gateway)):
    gateway.logout()


@router.get("/auth/session", response_model=SessionResponse, summary="Session en cours")
def current_session(gateway: EntityGateway = Depends(get_gateway)):
    return _session_response(gateway)
