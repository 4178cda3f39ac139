"""
Cache local SQLite de l'appareil.

Règles :
- init() crée le schéma une seule fois ; toute opération avant init() lève StoreError.
- Chaque écriture est une transaction atomique indépendante (un upsert = un commit).
- Écritures : toute erreur SQLAlchemy est remontée en StoreError, jamais avalée.
- Lectures : une erreur SQLAlchemy est journalisée et dégradée en "introuvable" / liste vide.
- Seul ce module écrit attendance_local.synced.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rolecaller.database import LocalBase, LocalSessionLocal, local_engine
from rolecaller.errors import StoreError
from rolecaller.models.local import (
    AttendanceLocal,
    ClassLocal,
    SchoolLocal,
    StudentLocal,
    SyncMeta,
    TeacherLocal,
)
from rolecaller.schemas.attendance import AttendanceRecord
from rolecaller.schemas.school import SchoolRecord
from rolecaller.schemas.school_class import ClassResponse
from rolecaller.schemas.student import StudentResponse
from rolecaller.schemas.teacher import TeacherIdentity

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Horodatage UTC naïf (SQLite ne conserve pas le fuseau)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LocalStore:
    def __init__(self, session_factory=LocalSessionLocal, engine=local_engine):
        self._session_factory = session_factory
        self._engine = engine
        self._initialized = False
        self._init_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Cycle de vie
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self) -> None:
        """Crée les tables et index du cache local (idempotent)."""
        with self._init_lock:
            if self._initialized:
                return
            try:
                LocalBase.metadata.create_all(bind=self._engine)
            except SQLAlchemyError as exc:
                logger.error("Création du schéma local impossible : %s", exc)
                raise StoreError("Initialisation du stockage local impossible.") from exc
            self._initialized = True
            logger.info("Tables SQLite locales créées/vérifiées")

    @contextmanager
    def _writing(self, action: str) -> Iterator[Session]:
        if not self._initialized:
            raise StoreError("Stockage local non initialisé.")
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Écriture locale en échec (%s) : %s", action, exc)
            raise StoreError(f"Écriture locale impossible : {action}.") from exc
        finally:
            db.close()

    def _read(self, action: str, query, default):
        """Exécute `query(db)` ; en cas d'erreur, journalise et retourne `default`."""
        if not self._initialized:
            raise StoreError("Stockage local non initialisé.")
        db = self._session_factory()
        try:
            return query(db)
        except SQLAlchemyError as exc:
            logger.warning("Lecture locale en échec (%s) : %s", action, exc)
            return default
        finally:
            db.close()

    @staticmethod
    def _upsert(db: Session, model, values: dict, conflict: Iterable[str] = ("id",), keep: Iterable[str] = ()):
        """INSERT ... ON CONFLICT DO UPDATE : toutes les colonnes hors clé sont écrasées."""
        conflict = list(conflict)
        stmt = sqlite_insert(model).values(**values)
        set_ = {
            key: stmt.excluded[key]
            for key in values
            if key not in conflict and key not in keep
        }
        db.execute(stmt.on_conflict_do_update(index_elements=conflict, set_=set_))

    # ------------------------------------------------------------------
    # Écoles
    # ------------------------------------------------------------------

    def upsert_school(self, school: SchoolRecord) -> None:
        with self._writing("upsert école") as db:
            self._upsert(db, SchoolLocal, school.model_dump())

    def get_school(self, school_id: str) -> Optional[SchoolRecord]:
        def query(db):
            row = db.get(SchoolLocal, school_id)
            return SchoolRecord.model_validate(row) if row else None

        return self._read("école par id", query, None)

    def find_school_by_email(self, email: str) -> Optional[SchoolRecord]:
        def query(db):
            row = db.execute(
                select(SchoolLocal).where(SchoolLocal.email == email).limit(1)
            ).scalar()
            return SchoolRecord.model_validate(row) if row else None

        return self._read("école par email", query, None)

    def delete_school(self, school_id: str) -> bool:
        with self._writing("suppression école") as db:
            result = db.execute(delete(SchoolLocal).where(SchoolLocal.id == school_id))
            deleted = result.rowcount
        return deleted > 0

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def upsert_class(self, school_class: ClassResponse) -> None:
        with self._writing("upsert classe") as db:
            self._upsert(db, ClassLocal, school_class.model_dump())

    def get_class(self, class_id: str) -> Optional[ClassResponse]:
        def query(db):
            row = db.get(ClassLocal, class_id)
            return ClassResponse.model_validate(row) if row else None

        return self._read("classe par id", query, None)

    def get_classes(self, school_id: str) -> List[ClassResponse]:
        def query(db):
            rows = db.execute(
                select(ClassLocal)
                .where(ClassLocal.school_id == school_id)
                .order_by(ClassLocal.name)
            ).scalars().all()
            return [ClassResponse.model_validate(r) for r in rows]

        return self._read("classes de l'école", query, [])

    def delete_class(self, class_id: str) -> bool:
        with self._writing("suppression classe") as db:
            result = db.execute(delete(ClassLocal).where(ClassLocal.id == class_id))
            deleted = result.rowcount
        return deleted > 0

    # ------------------------------------------------------------------
    # Élèves
    # ------------------------------------------------------------------

    def upsert_student(self, student: StudentResponse) -> None:
        with self._writing("upsert élève") as db:
            self._upsert(db, StudentLocal, student.model_dump())

    def get_student(self, student_id: str) -> Optional[StudentResponse]:
        def query(db):
            row = db.get(StudentLocal, student_id)
            return StudentResponse.model_validate(row) if row else None

        return self._read("élève par id", query, None)

    def get_students(self, school_id: str, class_id: Optional[str] = None) -> List[StudentResponse]:
        def query(db):
            stmt = select(StudentLocal).where(StudentLocal.school_id == school_id)
            if class_id:
                stmt = stmt.where(StudentLocal.class_id == class_id)
            rows = db.execute(stmt.order_by(StudentLocal.name)).scalars().all()
            return [StudentResponse.model_validate(r) for r in rows]

        return self._read("élèves de l'école", query, [])

    def delete_student(self, student_id: str) -> bool:
        with self._writing("suppression élève") as db:
            result = db.execute(delete(StudentLocal).where(StudentLocal.id == student_id))
            deleted = result.rowcount
        return deleted > 0

    def prune_roster(self, school_id: str, class_ids: Iterable[str], student_ids: Iterable[str]) -> Tuple[int, int]:
        """
        Supprime les classes et élèves locaux de l'école absents de la base distante.
        Retourne (classes supprimées, élèves supprimés).
        """
        class_ids = list(class_ids)
        student_ids = list(student_ids)
        with self._writing("nettoyage du roster") as db:
            classes = db.execute(
                delete(ClassLocal).where(
                    ClassLocal.school_id == school_id,
                    ClassLocal.id.not_in(class_ids),
                )
            )
            students = db.execute(
                delete(StudentLocal).where(
                    StudentLocal.school_id == school_id,
                    StudentLocal.id.not_in(student_ids),
                )
            )
            pruned = (classes.rowcount, students.rowcount)
        return pruned

    # ------------------------------------------------------------------
    # Présences
    # ------------------------------------------------------------------

    def upsert_attendance(
        self,
        student_id: str,
        class_id: str,
        day: date,
        status: str,
        teacher_name: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """
        Marque une présence. Cible du conflit : (student_id, date).
        Une ligne existante est écrasée (statut, classe, horodatage) et repasse à synced=False ;
        son id est conservé.
        """
        values = {
            "id": str(uuid.uuid4()),
            "student_id": student_id,
            "class_id": class_id,
            "date": day,
            "status": status,
            "teacher_name": teacher_name,
            "updated_at": updated_at or utcnow(),
            "synced": False,
        }
        with self._writing("marquage présence") as db:
            self._upsert(db, AttendanceLocal, values, conflict=("student_id", "date"), keep=("id",))
            row = db.execute(
                select(AttendanceLocal).where(
                    AttendanceLocal.student_id == student_id,
                    AttendanceLocal.date == day,
                )
            ).scalar_one()
            record = AttendanceRecord.model_validate(row)
        return record

    def get_attendance(self, class_id: str, day: date) -> List[AttendanceRecord]:
        def query(db):
            rows = db.execute(
                select(AttendanceLocal).where(
                    AttendanceLocal.class_id == class_id,
                    AttendanceLocal.date == day,
                )
            ).scalars().all()
            return [AttendanceRecord.model_validate(r) for r in rows]

        return self._read("présences du jour", query, [])

    def get_all_attendance(self, class_id: str) -> List[AttendanceRecord]:
        def query(db):
            rows = db.execute(
                select(AttendanceLocal)
                .where(AttendanceLocal.class_id == class_id)
                .order_by(AttendanceLocal.date)
            ).scalars().all()
            return [AttendanceRecord.model_validate(r) for r in rows]

        return self._read("historique des présences", query, [])

    def get_unsynced(self) -> List[AttendanceRecord]:
        def query(db):
            rows = db.execute(
                select(AttendanceLocal).where(AttendanceLocal.synced.is_(False))
            ).scalars().all()
            return [AttendanceRecord.model_validate(r) for r in rows]

        return self._read("présences non synchronisées", query, [])

    def count_unsynced(self) -> int:
        def query(db):
            return db.execute(
                select(func.count())
                .select_from(AttendanceLocal)
                .where(AttendanceLocal.synced.is_(False))
            ).scalar() or 0

        return self._read("compteur non synchronisées", query, 0)

    def mark_synced(self, records: Iterable[AttendanceRecord]) -> int:
        """
        Passe à synced=True les présences envoyées.
        Une ligne re-marquée depuis l'envoi (updated_at différent) reste non synchronisée.
        """
        marked = 0
        with self._writing("marquage synchronisé") as db:
            for record in records:
                result = db.execute(
                    update(AttendanceLocal)
                    .where(
                        and_(
                            AttendanceLocal.id == record.id,
                            AttendanceLocal.updated_at == record.updated_at,
                        )
                    )
                    .values(synced=True)
                )
                marked += result.rowcount
        return marked

    def delete_attendance(self, record_id: str) -> bool:
        with self._writing("suppression présence") as db:
            result = db.execute(delete(AttendanceLocal).where(AttendanceLocal.id == record_id))
            deleted = result.rowcount
        return deleted > 0

    # ------------------------------------------------------------------
    # Identité de l'enseignant
    # ------------------------------------------------------------------

    def upsert_teacher(self, school_id: str, name: str) -> TeacherIdentity:
        """Une seule identité par école : le nom est remplacé, l'id d'origine conservé."""
        values = {
            "id": str(uuid.uuid4()),
            "school_id": school_id,
            "name": name,
            "created_at": utcnow(),
        }
        with self._writing("identité enseignant") as db:
            self._upsert(db, TeacherLocal, values, conflict=("school_id",), keep=("id", "created_at"))
            row = db.execute(
                select(TeacherLocal).where(TeacherLocal.school_id == school_id)
            ).scalar_one()
            identity = TeacherIdentity.model_validate(row)
        return identity

    def get_teacher(self, school_id: str) -> Optional[TeacherIdentity]:
        def query(db):
            row = db.execute(
                select(TeacherLocal).where(TeacherLocal.school_id == school_id).limit(1)
            ).scalar()
            return TeacherIdentity.model_validate(row) if row else None

        return self._read("identité enseignant", query, None)

    # ------------------------------------------------------------------
    # Métadonnées de l'appareil
    # ------------------------------------------------------------------

    def get_meta(self, key: str) -> Optional[str]:
        def query(db):
            row = db.get(SyncMeta, key)
            return row.value if row else None

        return self._read(f"meta {key}", query, None)

    def set_meta(self, key: str, value: Optional[str]) -> None:
        with self._writing(f"meta {key}") as db:
            self._upsert(db, SyncMeta, {"key": key, "value": value}, conflict=("key",))

    def delete_meta(self, key: str) -> None:
        with self._writing(f"meta {key}") as db:
            db.execute(delete(SyncMeta).where(SyncMeta.key == key))
