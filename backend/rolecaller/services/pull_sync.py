"""
Pull : copie à sens unique école + classes + élèves, base distante → cache local.

Ordre : École, puis Classes, puis Élèves. Chaque upsert est atomique et indépendant :
un lecteur concurrent peut voir une liste partiellement à jour, jamais une ligne corrompue.
Un fetch en échec interrompt les étapes suivantes ; les upserts déjà appliqués restent commités.
Les présences et l'identité de l'enseignant ne sont jamais touchées.
"""

import logging

from rolecaller.errors import ConnectivityError, NotFoundError, RolecallerError, ValidationError
from rolecaller.schemas.sync import PullReport
from rolecaller.services.connectivity import ConnectivityOracle
from rolecaller.services.local_store import LocalStore, utcnow
from rolecaller.services.remote_store import RemoteStore
from rolecaller.services.sync_guard import SyncGuard

logger = logging.getLogger(__name__)

LAST_SYNC_KEY = "last_sync"


class PullSynchronizer:
    def __init__(self, oracle: ConnectivityOracle, local: LocalStore, remote: RemoteStore, guard: SyncGuard):
        self._oracle = oracle
        self._local = local
        self._remote = remote
        self._guard = guard

    def pull(self, school_id: str) -> PullReport:
        """
        Télécharge les données de l'école dans le cache local.

        Étapes :
        1. Vérifier la connexion (ConnectivityError sinon, aucune I/O)
        2. École distante → upsert (NotFoundError si absente, rien n'est appliqué)
        3. Classes de l'école → upsert une par une
        4. Élèves de l'école → upsert un par un
        5. Supprimer localement les classes/élèves disparus de la base distante
        6. Enregistrer l'horodatage du dernier pull
        """
        if not school_id:
            raise ValidationError("Identifiant d'école requis pour la synchronisation.")

        with self._guard.exclusive():
            if not self._oracle.is_online():
                raise ConnectivityError("Pas de connexion internet.")
            try:
                return self._pull(school_id)
            except RolecallerError as exc:
                logger.error("Pull de l'école %s en échec : %s", school_id, exc.message)
                raise

    def _pull(self, school_id: str) -> PullReport:
        logger.info("Pull des données de l'école %s...", school_id)

        school = self._remote.get_school(school_id)
        if school is None:
            raise NotFoundError("École introuvable.")
        self._local.upsert_school(school)

        classes = self._remote.get_classes(school_id)
        for school_class in classes:
            self._local.upsert_class(school_class)

        students = self._remote.get_students(school_id)
        for student in students:
            self._local.upsert_student(student)

        pruned_classes, pruned_students = self._local.prune_roster(
            school_id,
            [c.id for c in classes],
            [s.id for s in students],
        )

        synced_at = utcnow()
        self._local.set_meta(LAST_SYNC_KEY, synced_at.isoformat())

        logger.info(
            "Pull école %s : %d classes, %d élèves (%d classes et %d élèves retirés)",
            school_id, len(classes), len(students), pruned_classes, pruned_students,
        )
        return PullReport(
            school_id=school_id,
            classes=len(classes),
            students=len(students),
            pruned_classes=pruned_classes,
            pruned_students=pruned_students,
            synced_at=synced_at,
        )
