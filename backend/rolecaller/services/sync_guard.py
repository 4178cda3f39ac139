"""
Verrou in-process partagé par le pull et le push : une seule synchronisation à la fois.
Une tentative concurrente échoue immédiatement (SyncInProgressError) au lieu d'attendre.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from rolecaller.errors import SyncInProgressError


class SyncGuard:
    def __init__(self):
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise SyncInProgressError("Une synchronisation est déjà en cours.")
        try:
            yield
        finally:
            self._lock.release()
