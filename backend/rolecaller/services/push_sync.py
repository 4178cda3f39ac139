"""
Push : envoi des présences hors-ligne (synced=False) vers la base distante.

Stratégie :
- regroupement par classe ; l'école de la classe est résolue dans le cache local
  (classe absente → groupe ignoré, présences laissées non synchronisées) ;
- nom de l'enseignant : instantané pris au marquage, sinon identité actuelle de l'école ;
- chaque présence est envoyée par upsert (student_id, date) → un push rejoué est idempotent ;
- une ConnectivityError abandonne le reste du groupe, les autres groupes sont tentés ;
- seules les présences confirmées par la base distante passent à synced=True.
"""

import logging
from collections import defaultdict
from typing import Dict, List

from rolecaller.errors import ConnectivityError, RolecallerError
from rolecaller.schemas.attendance import AttendanceRecord
from rolecaller.schemas.sync import PushFailure, PushReport
from rolecaller.services.connectivity import ConnectivityOracle
from rolecaller.services.local_store import LocalStore
from rolecaller.services.remote_store import RemoteStore
from rolecaller.services.sync_guard import SyncGuard

logger = logging.getLogger(__name__)


def _failure(record: AttendanceRecord, reason: str) -> PushFailure:
    return PushFailure(
        record_id=record.id,
        student_id=record.student_id,
        class_id=record.class_id,
        date=record.date,
        reason=reason,
    )


class PushSynchronizer:
    def __init__(self, oracle: ConnectivityOracle, local: LocalStore, remote: RemoteStore, guard: SyncGuard):
        self._oracle = oracle
        self._local = local
        self._remote = remote
        self._guard = guard

    def push(self) -> PushReport:
        with self._guard.exclusive():
            unsynced = self._local.get_unsynced()
            if not unsynced:
                logger.info("Rien à synchroniser")
                return PushReport(total=0, pushed_count=0, failures=[])

            if not self._oracle.is_online():
                raise ConnectivityError("Pas de connexion internet.")

            logger.info("Envoi de %d présences hors-ligne...", len(unsynced))

            groups: Dict[str, List[AttendanceRecord]] = defaultdict(list)
            for record in unsynced:
                groups[record.class_id].append(record)

            pushed: List[AttendanceRecord] = []
            failures: List[PushFailure] = []
            for class_id, records in groups.items():
                self._push_group(class_id, records, pushed, failures)

            marked = self._local.mark_synced(pushed) if pushed else 0
            if marked < len(pushed):
                logger.warning(
                    "%d présences re-marquées pendant l'envoi restent à synchroniser",
                    len(pushed) - marked,
                )

            logger.info("Push terminé : %d succès, %d erreurs", len(pushed), len(failures))
            return PushReport(total=len(unsynced), pushed_count=len(pushed), failures=failures)

    def _push_group(
        self,
        class_id: str,
        records: List[AttendanceRecord],
        pushed: List[AttendanceRecord],
        failures: List[PushFailure],
    ) -> None:
        school_class = self._local.get_class(class_id)
        if school_class is None:
            logger.warning(
                "Classe %s absente du cache local : %d présences ignorées", class_id, len(records)
            )
            failures.extend(_failure(r, "Classe absente du cache local.") for r in records)
            return

        identity = self._local.get_teacher(school_class.school_id)
        current_name = identity.name if identity else None

        for index, record in enumerate(records):
            try:
                self._remote.upsert_attendance(
                    student_id=record.student_id,
                    class_id=record.class_id,
                    day=record.date,
                    status=record.status,
                    teacher_name=record.teacher_name or current_name,
                    updated_at=record.updated_at,
                )
            except ConnectivityError as exc:
                logger.error("Classe %s : connexion perdue, groupe abandonné", class_id)
                failures.extend(_failure(r, exc.message) for r in records[index:])
                return
            except RolecallerError as exc:
                logger.error(
                    "Échec de l'envoi de %s du %s : %s", record.student_id, record.date, exc.message
                )
                failures.append(_failure(record, exc.message))
                continue
            pushed.append(record)
