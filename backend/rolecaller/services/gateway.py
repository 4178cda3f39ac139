"""
Façade lecture/écriture par type d'entité : décide, pour chaque opération,
entre cache local et base distante selon l'oracle de connectivité.

Politiques :
- Écoles : lecture en ligne uniquement ; la connexion retombe sur le cache local hors-ligne.
- Classes / élèves : lecture local d'abord, distant seulement si le cache est vide ET en ligne
  (le résultat distant n'est jamais réécrit localement : c'est le rôle du pull).
  Écritures en ligne uniquement, aucune file d'attente.
- Présences : écriture toujours locale (synced=False) ; lecture local d'abord.
- Aucune erreur distante n'est retentée ici.

L'oracle est consulté une seule fois par opération.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from rolecaller.errors import (
    ConnectivityError,
    InvalidCredentialsError,
    NotFoundError,
    NotLoggedInError,
    ValidationError,
)
from rolecaller.schemas.attendance import VALID_STATUSES, AttendanceRecord
from rolecaller.schemas.school import VALID_ROLES, SchoolRecord, SchoolResponse
from rolecaller.schemas.school_class import ClassResponse
from rolecaller.schemas.student import StudentCreate, StudentImportRow, StudentResponse, StudentUpdate
from rolecaller.schemas.sync import PullReport, PushReport, SyncReport, SyncStatus
from rolecaller.schemas.teacher import TeacherIdentity
from rolecaller.services.connectivity import ConnectivityOracle
from rolecaller.services.local_store import LocalStore, utcnow
from rolecaller.services.pull_sync import LAST_SYNC_KEY, PullSynchronizer
from rolecaller.services.push_sync import PushSynchronizer
from rolecaller.services.remote_store import RemoteStore
from rolecaller.services.sync_guard import SyncGuard

logger = logging.getLogger(__name__)

NO_INTERNET = "Pas de connexion internet."
SESSION_SCHOOL_KEY = "school_id"
SESSION_ROLE_KEY = "school_role"


@dataclass
class SchoolSession:
    """École connectée sur l'appareil, de login() à logout()."""
    school: SchoolResponse
    role: str
    opened_at: datetime = field(default_factory=utcnow)


def _public(school: SchoolRecord) -> SchoolResponse:
    return SchoolResponse(**school.model_dump(exclude={"password"}))


def _status_map(records: List[AttendanceRecord]) -> Dict[str, str]:
    return {r.student_id: r.status for r in records}


def _history_map(records: List[AttendanceRecord]) -> Dict[str, Dict[str, str]]:
    history: Dict[str, Dict[str, str]] = {}
    for r in records:
        history.setdefault(r.date.isoformat(), {})[r.student_id] = r.status
    return history


class EntityGateway:
    def __init__(
        self,
        oracle: ConnectivityOracle,
        local: LocalStore,
        remote: RemoteStore,
        guard: Optional[SyncGuard] = None,
    ):
        self.oracle = oracle
        self.local = local
        self.remote = remote
        self.guard = guard or SyncGuard()
        self.puller = PullSynchronizer(oracle, local, remote, self.guard)
        self.pusher = PushSynchronizer(oracle, local, remote, self.guard)
        self.session: Optional[SchoolSession] = None

    def _require_online(self) -> None:
        if not self.oracle.is_online():
            raise ConnectivityError(NO_INTERNET)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, email: str, password: str, role: str = "admin") -> SchoolResponse:
        """
        Vérifie les identifiants (égalité en clair, même règle en ligne et hors-ligne).
        En ligne : base distante ; hors-ligne ou base injoignable : cache local.
        Ouvre la session et la mémorise pour la restaurer au prochain démarrage.
        """
        if role not in VALID_ROLES:
            raise ValidationError(f"Rôle invalide : {role}")

        school = None
        if self.oracle.is_online():
            try:
                school = self.remote.find_school_by_email(email)
            except ConnectivityError:
                logger.warning("Base distante injoignable, connexion sur le cache local")
                school = self.local.find_school_by_email(email)
        else:
            school = self.local.find_school_by_email(email)

        if school is None:
            raise InvalidCredentialsError("École introuvable.")
        if school.password != password:
            raise InvalidCredentialsError("Mot de passe invalide.")

        public = _public(school)
        self.session = SchoolSession(school=public, role=role)
        self.local.set_meta(SESSION_SCHOOL_KEY, public.id)
        self.local.set_meta(SESSION_ROLE_KEY, role)
        logger.info("Session ouverte : école %s (%s)", public.id, role)
        return public

    def logout(self) -> None:
        self.session = None
        self.local.delete_meta(SESSION_SCHOOL_KEY)
        self.local.delete_meta(SESSION_ROLE_KEY)

    def restore_session(self) -> Optional[SchoolSession]:
        """Rouvre la dernière session depuis le cache local (fonctionne hors-ligne)."""
        school_id = self.local.get_meta(SESSION_SCHOOL_KEY)
        if not school_id:
            return None
        school = self.local.get_school(school_id)
        if school is None:
            logger.warning("École %s mémorisée mais absente du cache local", school_id)
            return None
        role = self.local.get_meta(SESSION_ROLE_KEY) or "teacher"
        self.session = SchoolSession(school=_public(school), role=role)
        return self.session

    def require_session(self) -> SchoolSession:
        if self.session is None:
            raise NotLoggedInError("Aucune école n'est connectée.")
        return self.session

    # ------------------------------------------------------------------
    # Écoles
    # ------------------------------------------------------------------

    def get_schools(self) -> List[SchoolResponse]:
        self._require_online()
        return self.remote.list_schools()

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def get_classes(self, school_id: str) -> List[ClassResponse]:
        classes = self.local.get_classes(school_id)
        if classes:
            return classes
        if self.oracle.is_online():
            return self.remote.get_classes(school_id)
        logger.info("Aucune classe locale pour l'école %s (hors-ligne)", school_id)
        return []

    def add_class(self, name: str, school_id: str) -> ClassResponse:
        self._require_online()
        return self.remote.insert_class(school_id, name)

    def delete_class(self, class_id: str) -> None:
        self._require_online()
        if not self.remote.delete_class(class_id):
            raise NotFoundError("Classe introuvable.")

    # ------------------------------------------------------------------
    # Élèves
    # ------------------------------------------------------------------

    def get_students(self, school_id: str, class_id: Optional[str] = None) -> List[StudentResponse]:
        students = self.local.get_students(school_id, class_id)
        if students:
            return students
        if self.oracle.is_online():
            return self.remote.get_students(school_id, class_id)
        return []

    def add_student(self, data: StudentCreate) -> StudentResponse:
        self._require_online()
        return self.remote.insert_student(data)

    def update_student(self, student_id: str, data: StudentUpdate) -> StudentResponse:
        self._require_online()
        student = self.remote.update_student(student_id, data)
        if student is None:
            raise NotFoundError("Élève introuvable.")
        return student

    def delete_student(self, student_id: str) -> None:
        self._require_online()
        if not self.remote.delete_student(student_id):
            raise NotFoundError("Élève introuvable.")

    def upload_students(self, school_id: str, batch: List[StudentImportRow]) -> Tuple[int, int]:
        """Insère un lot d'élèves (import CSV). Retourne (insérés, classes créées)."""
        self._require_online()
        if not batch:
            return 0, 0
        return self.remote.insert_students(school_id, batch)

    # ------------------------------------------------------------------
    # Présences
    # ------------------------------------------------------------------

    def mark_attendance(self, student_id: str, class_id: str, day: date, status: str) -> AttendanceRecord:
        """
        Enregistre la présence dans le cache local, quel que soit l'état du réseau.
        Le nom de l'enseignant est figé au moment du marquage.
        """
        if not student_id:
            raise ValidationError("Élève requis pour marquer une présence.")
        if not class_id:
            raise ValidationError("Classe requise pour marquer une présence.")
        if status not in VALID_STATUSES:
            raise ValidationError(f"Statut invalide : {status}")

        teacher_name = None
        school_class = self.local.get_class(class_id)
        if school_class is not None:
            identity = self.local.get_teacher(school_class.school_id)
            teacher_name = identity.name if identity else None

        record = self.local.upsert_attendance(student_id, class_id, day, status, teacher_name)
        logger.info("Présence marquée pour %s : %s", student_id, status)
        return record

    def get_attendance(self, class_id: str, day: date) -> Dict[str, str]:
        """Retourne {student_id: statut} pour une classe et un jour."""
        records = self.local.get_attendance(class_id, day)
        if records:
            return _status_map(records)
        if self.oracle.is_online():
            return _status_map(self.remote.get_attendance(class_id, day))
        return {}

    def get_all_attendance(self, class_id: str) -> Dict[str, Dict[str, str]]:
        """Retourne {date ISO: {student_id: statut}} pour une classe."""
        records = self.local.get_all_attendance(class_id)
        if records:
            return _history_map(records)
        if self.oracle.is_online():
            return _history_map(self.remote.get_all_attendance(class_id))
        return {}

    def get_unsynced_count(self) -> int:
        return self.local.count_unsynced()

    # ------------------------------------------------------------------
    # Identité de l'enseignant
    # ------------------------------------------------------------------

    def save_teacher_identity(self, school_id: str, name: str) -> TeacherIdentity:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Le nom de l'enseignant ne peut pas être vide.")
        return self.local.upsert_teacher(school_id, name)

    def get_teacher_identity(self, school_id: str) -> Optional[TeacherIdentity]:
        return self.local.get_teacher(school_id)

    # ------------------------------------------------------------------
    # Synchronisation
    # ------------------------------------------------------------------

    def download_school_data(self, school_id: str) -> PullReport:
        return self.puller.pull(school_id)

    def push_offline_attendance(self) -> PushReport:
        return self.pusher.push()

    def synchronize(self, school_id: str) -> SyncReport:
        """Synchronisation déclenchée par l'utilisateur : pull puis push."""
        pull_report = self.puller.pull(school_id)
        push_report = self.pusher.push()
        return SyncReport(pull=pull_report, push=push_report)

    def sync_status(self) -> SyncStatus:
        last_sync = self.local.get_meta(LAST_SYNC_KEY)
        return SyncStatus(
            online=self.oracle.last_known,
            unsynced_count=self.local.count_unsynced(),
            last_sync=datetime.fromisoformat(last_sync) if last_sync else None,
            sync_in_progress=self.guard.busy,
        )
