"""
Router pour la synchronisation du cache local.
- pull : base distante → cache local (école, classes, élèves)
- push : présences hors-ligne → base distante
"""

from fastapi import APIRouter, Depends

from rolecaller.dependencies import get_gateway
from rolecaller.schemas.sync import PullReport, PushReport, SyncReport, SyncStatus
from rolecaller.services.gateway import EntityGateway

router = APIRouter(prefix="/api/sync", tags=["Synchronisation"])


@router.get("/status", response_model=SyncStatus, summary="État de la synchronisation")
def sync_status(gateway: EntityGateway = Depends(get_gateway)):
    """Nombre de présences en attente, dernier pull, état réseau connu."""
    return gateway.sync_status()


@router.post("/pull/{school_id}", response_model=PullReport, summary="Télécharger les données de l'école")
def pull(school_id: str, gateway: EntityGateway = Depends(get_gateway)):
    """
    Copie l'école, ses classes et ses élèves dans le cache local.
    Idempotent : relancer un pull sans changement distant ne modifie rien.
    """
    return gateway.download_school_data(school_id)


@router.post("/push", response_model=PushReport, summary="Envoyer les présences hors-ligne")
def push(gateway: EntityGateway = Depends(get_gateway)):
    """
    Envoie les présences non synchronisées.
    Seules les présences acceptées par la base distante sont marquées synchronisées ;
    les autres sont listées dans `failures` et seront retentées au prochain push.
    """
    return gateway.push_offline_attendance()


@router.post("/{school_id}", response_model=SyncReport, summary="Synchroniser (pull puis push)")
def synchronize(school_id: str, gateway: EntityGateway = Depends(get_gateway)):
    return gateway.synchronize(school_id)
