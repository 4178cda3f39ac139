"""
Accès à la base distante (autorité, accessible uniquement en ligne).

La base distante génère les identifiants des écoles, classes et élèves.
Les présences y arrivent uniquement par upsert (student_id, date) depuis le push.

Erreurs :
- connexion perdue / injoignable (OperationalError, InterfaceError, timeout du pool)
  → ConnectivityError ;
- contrainte violée (IntegrityError) → ConflictError ;
- toute autre erreur SQLAlchemy → StoreError.
Aucun retry ici : c'est à l'appelant (ou aux synchroniseurs) de décider.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from rolecaller.database import SessionLocal
from rolecaller.errors import ConflictError, ConnectivityError, StoreError
from rolecaller.models.attendance import Attendance
from rolecaller.models.school import School
from rolecaller.models.school_class import SchoolClass
from rolecaller.models.student import Student
from rolecaller.schemas.attendance import AttendanceRecord
from rolecaller.schemas.school import SchoolRecord, SchoolResponse
from rolecaller.schemas.school_class import ClassResponse
from rolecaller.schemas.student import StudentCreate, StudentImportRow, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)


def _insert_for(db: Session, model):
    """INSERT compatible ON CONFLICT selon le dialecte (PostgreSQL en production, SQLite en test)."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise StoreError(f"Dialecte non supporté pour l'upsert : {dialect}")


class RemoteStore:
    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
            db.rollback()
            logger.error("Base distante injoignable (%s) : %s", action, exc)
            raise ConnectivityError("Base distante injoignable.") from exc
        except IntegrityError as exc:
            db.rollback()
            logger.error("Contrainte violée sur la base distante (%s) : %s", action, exc.orig)
            raise ConflictError(f"Conflit avec les données distantes : {action}.") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Erreur base distante (%s) : %s", action, exc)
            raise StoreError(f"Erreur de la base distante : {action}.") from exc
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Écoles
    # ------------------------------------------------------------------

    def list_schools(self) -> List[SchoolResponse]:
        with self._session("liste des écoles") as db:
            rows = db.execute(select(School).order_by(School.name)).scalars().all()
            return [SchoolResponse.model_validate(r) for r in rows]

    def get_school(self, school_id: str) -> Optional[SchoolRecord]:
        with self._session("école par id") as db:
            row = db.get(School, school_id)
            return SchoolRecord.model_validate(row) if row else None

    def find_school_by_email(self, email: str) -> Optional[SchoolRecord]:
        with self._session("école par email") as db:
            row = db.execute(select(School).where(School.email == email).limit(1)).scalar()
            return SchoolRecord.model_validate(row) if row else None

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def get_classes(self, school_id: str) -> List[ClassResponse]:
        with self._session("classes de l'école") as db:
            rows = db.execute(
                select(SchoolClass)
                .where(SchoolClass.school_id == school_id)
                .order_by(SchoolClass.name)
            ).scalars().all()
            return [ClassResponse.model_validate(r) for r in rows]

    def insert_class(self, school_id: str, name: str) -> ClassResponse:
        with self._session("création classe") as db:
            school_class = SchoolClass(school_id=school_id, name=name)
            db.add(school_class)
            db.commit()
            db.refresh(school_class)
            return ClassResponse.model_validate(school_class)

    def delete_class(self, class_id: str) -> bool:
        with self._session("suppression classe") as db:
            school_class = db.get(SchoolClass, class_id)
            if school_class is None:
                return False
            db.delete(school_class)
            db.commit()
            return True

    # ------------------------------------------------------------------
    # Élèves
    # ------------------------------------------------------------------

    def get_students(self, school_id: str, class_id: Optional[str] = None) -> List[StudentResponse]:
        with self._session("élèves de l'école") as db:
            stmt = select(Student).where(Student.school_id == school_id)
            if class_id:
                stmt = stmt.where(Student.class_id == class_id)
            rows = db.execute(stmt.order_by(Student.name)).scalars().all()
            return [StudentResponse.model_validate(r) for r in rows]

    def insert_student(self, data: StudentCreate) -> StudentResponse:
        with self._session("création élève") as db:
            student = Student(
                school_id=data.school_id,
                class_id=data.class_id,
                name=data.name,
                grade=data.grade,
            )
            db.add(student)
            db.commit()
            db.refresh(student)
            return StudentResponse.model_validate(student)

    def update_student(self, student_id: str, data: StudentUpdate) -> Optional[StudentResponse]:
        """Met à jour les champs fournis. Retourne None si l'élève est introuvable."""
        with self._session("mise à jour élève") as db:
            student = db.get(Student, student_id)
            if student is None:
                return None
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(student, field, value)
            db.commit()
            db.refresh(student)
            return StudentResponse.model_validate(student)

    def delete_student(self, student_id: str) -> bool:
        with self._session("suppression élève") as db:
            student = db.get(Student, student_id)
            if student is None:
                return False
            db.delete(student)
            db.commit()
            return True

    def insert_students(self, school_id: str, rows: List[StudentImportRow]) -> Tuple[int, int]:
        """
        Insère un lot d'élèves dans une seule transaction.
        La colonne classe est résolue par nom (insensible à la casse) dans l'école,
        la classe est créée si elle n'existe pas encore.
        Retourne (élèves insérés, classes créées).
        """
        with self._session("import élèves") as db:
            classes_map = {
                name.lower(): class_id
                for class_id, name in db.execute(
                    select(SchoolClass.id, SchoolClass.name).where(SchoolClass.school_id == school_id)
                ).all()
            }
            classes_created = 0

            for row in rows:
                class_id = None
                if row.class_name:
                    key = row.class_name.strip().lower()
                    class_id = classes_map.get(key)
                    if class_id is None:
                        new_class = SchoolClass(school_id=school_id, name=row.class_name.strip())
                        db.add(new_class)
                        db.flush()  # obtenir l'ID sans committer
                        class_id = classes_map[key] = new_class.id
                        classes_created += 1
                db.add(Student(school_id=school_id, class_id=class_id, name=row.name, grade=row.grade))

            db.commit()
            return len(rows), classes_created

    # ------------------------------------------------------------------
    # Présences
    # ------------------------------------------------------------------

    def get_attendance(self, class_id: str, day: date) -> List[AttendanceRecord]:
        with self._session("présences du jour") as db:
            rows = db.execute(
                select(Attendance).where(Attendance.class_id == class_id, Attendance.date == day)
            ).scalars().all()
            return [AttendanceRecord.model_validate(r) for r in rows]

    def get_all_attendance(self, class_id: str) -> List[AttendanceRecord]:
        with self._session("historique des présences") as db:
            rows = db.execute(
                select(Attendance).where(Attendance.class_id == class_id).order_by(Attendance.date)
            ).scalars().all()
            return [AttendanceRecord.model_validate(r) for r in rows]

    def upsert_attendance(
        self,
        student_id: str,
        class_id: str,
        day: date,
        status: str,
        teacher_name: Optional[str],
        updated_at: datetime,
    ) -> None:
        """
        Upsert atomique sur (student_id, date) : un push rejoué est sans effet de bord.
        Last-write-wins sur updated_at : une ligne distante plus récente n'est pas écrasée.
        """
        with self._session("upsert présence") as db:
            stmt = _insert_for(db, Attendance).values(
                id=str(uuid.uuid4()),
                student_id=student_id,
                class_id=class_id,
                date=day,
                status=status,
                teacher_name=teacher_name,
                updated_at=updated_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["student_id", "date"],
                set_={
                    "class_id": stmt.excluded.class_id,
                    "status": stmt.excluded.status,
                    "teacher_name": stmt.excluded.teacher_name,
                    "updated_at": stmt.excluded.updated_at,
                },
                where=Attendance.updated_at <= stmt.excluded.updated_at,
            )
            db.execute(stmt)
            db.commit()

