"""
Schémas Pydantic pour la synchronisation (pull distant → local, push local → distant).
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel


class PullReport(BaseModel):
    """Rapport d'un téléchargement des données d'une école."""
    school_id: str
    classes: int
    students: int
    pruned_classes: int = 0
    pruned_students: int = 0
    synced_at: datetime


class PushFailure(BaseModel):
    """Présence qui n'a pas pu être envoyée ; elle reste non synchronisée."""
    record_id: str
    student_id: str
    class_id: str
    date: date
    reason: str


class PushReport(BaseModel):
    """Rapport d'envoi des présences hors-ligne."""
    total: int
    pushed_count: int
    failures: List[PushFailure]


class SyncReport(BaseModel):
    """Synchronisation complète déclenchée par l'utilisateur (pull puis push)."""
    pull: PullReport
    push: PushReport


class SyncStatus(BaseModel):
    online: bool
    unsynced_count: int
    last_sync: Optional[datetime] = None
    sync_in_progress: bool = False
