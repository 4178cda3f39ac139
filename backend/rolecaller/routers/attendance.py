"""
Router pour le marquage et la consultation des présences.
Le marquage fonctionne hors-ligne : il est écrit dans le cache local puis envoyé par le push.
"""

from datetime import date
from typing import Dict

from fastapi import APIRouter, Depends

from rolecaller.dependencies import get_gateway
from rolecaller.schemas.attendance import AttendanceMark, AttendanceRecord
from rolecaller.services.gateway import EntityGateway

router = APIRouter(prefix="/api/v1/attendance", tags=["Présences"])


@router.post("", response_model=AttendanceRecord, summary="Marquer une présence")
def mark_attendance(data: AttendanceMark, gateway: EntityGateway = Depends(get_gateway)):
    """
    Enregistre (ou remplace) la présence d'un élève pour un jour.
    Une seule présence par élève et par jour ; la présence repasse à non synchronisée.
    """
    return gateway.mark_attendance(data.student_id, data.class_id, data.date, data.status)


@router.get("", response_model=Dict[str, str], summary="Présences d'une classe pour un jour")
def get_attendance(class_id: str, date: date, gateway: EntityGateway = Depends(get_gateway)):
    """Retourne {student_id: statut}."""
    return gateway.get_attendance(class_id, date)


@router.get("/history", response_model=Dict[str, Dict[str, str]], summary="Historique d'une classe")
def get_all_attendance(class_id: str, gateway: EntityGateway = Depends(get_gateway)):
    """Retourne {date: {student_id: statut}}."""
    return gateway.get_all_attendance(class_id)
