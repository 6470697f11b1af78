"""
Academia API — Student Service (Business Logic)
================================================

What:  The five student operations: list, get, create, update, delete.
How:   Each method runs against the request's AsyncSession and translates
       "no row" and SQLAlchemy failures into the application exception
       hierarchy. Write methods commit before returning, so a failed commit
       becomes an error response instead of a success already sent;
       get_db_session() rolls back whatever an error leaves pending.
Who:   Called by the /estudiantes route handlers. One instance is built by
       create_app() and injected through get_student_service().

Error translation:
    model validator      → ValidationError       (400)
    IntegrityError       → UniqueConstraintError (400)
    missing row          → NotFoundError         (404)
    StaleDataError       → NotFoundError         (404, row vanished mid-update)
    other SQLAlchemyError→ StoreUnavailableError (500)
"""

import logging
from typing import List, Optional

from fastapi import Request
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from academia.exceptions import (
    AcademiaError,
    NotFoundError,
    StoreUnavailableError,
    UniqueConstraintError,
    ValidationError,
)
from academia.models.student import Student
from academia.schemas.student import (
    DeleteResponse,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)

# Largest value SQLite can store in an INTEGER column
_MAX_ROWID = 2**63 - 1

NOT_FOUND_MESSAGE = "Estudiante no encontrado"
REQUIRED_FIELDS_MESSAGE = "Los campos nombre y email son obligatorios"
DELETED_MESSAGE = "Estudiante eliminado correctamente"


def parse_student_id(raw: str) -> Optional[int]:
    """
    Convert a path id into a primary key value.

    Anything that is not a positive integer can never match a row and
    yields None, which callers report as not found.
    """
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    if value < 1 or value > _MAX_ROWID:
        return None
    return value


class StudentService:
    """
    Business logic layer for student records.

    Stateless: the session arrives with every call, so one instance serves
    all concurrent requests.
    """

    def _not_found(self, student_id: str) -> NotFoundError:
        return NotFoundError(
            message=NOT_FOUND_MESSAGE,
            resource="estudiante",
            resource_id=student_id,
        )

    def _store_error(self, exc: SQLAlchemyError, operation: str) -> StoreUnavailableError:
        logger.error("Database error during %s: %s", operation, str(exc), exc_info=True)
        return StoreUnavailableError(
            message=f"Error al {operation}",
            context={"error_type": type(exc).__name__},
        )

    async def _load(self, db: AsyncSession, student_id: str) -> Student:
        pk = parse_student_id(student_id)
        student = await db.get(Student, pk) if pk is not None else None
        if student is None:
            raise self._not_found(student_id)
        return student

    async def list_students(self, db: AsyncSession) -> List[StudentResponse]:
        """
        Return every student, ordered by id.

        Raises:
            StoreUnavailableError: Query execution failed (→ 500)
        """
        try:
            result = await db.execute(select(Student).order_by(Student.id))
            students = result.scalars().all()
        except SQLAlchemyError as e:
            raise self._store_error(e, "obtener la lista de estudiantes") from e

        return [StudentResponse.model_validate(s) for s in students]

    async def get_student(self, db: AsyncSession, student_id: str) -> StudentResponse:
        """
        Retrieve a single student by id.

        Raises:
            NotFoundError: No student with that id (→ 404)
            StoreUnavailableError: Query execution failed (→ 500)
        """
        try:
            student = await self._load(db, student_id)
        except SQLAlchemyError as e:
            raise self._store_error(e, "obtener el estudiante") from e

        return StudentResponse.model_validate(student)

    async def create_student(self, db: AsyncSession, payload: StudentCreate) -> StudentResponse:
        """
        Validate and insert a new student.

        Workflow:
            1. Both fields must be present and non-empty (nothing is persisted otherwise)
            2. The model validators check name and email format
            3. Flush inserts the row; the UNIQUE index rejects duplicate emails
            4. Refresh loads the generated id and timestamps
            5. Commit before the 201 leaves the server

        Raises:
            ValidationError: Missing field or malformed value (→ 400)
            UniqueConstraintError: Email already registered (→ 400)
            StoreUnavailableError: Insert failed for another reason (→ 500)
        """
        if not payload.nombre or not payload.email:
            raise ValidationError(
                message=REQUIRED_FIELDS_MESSAGE,
                context={"missing": [f for f in ("nombre", "email") if not getattr(payload, f)]},
            )

        try:
            student = Student(nombre=payload.nombre, email=payload.email)
            db.add(student)
            await db.flush()
            await db.refresh(student)
            await db.commit()
        except IntegrityError as e:
            logger.info("Duplicate email rejected on create: %s", payload.email)
            raise UniqueConstraintError(field="email", value=payload.email) from e
        except SQLAlchemyError as e:
            raise self._store_error(e, "crear el estudiante") from e

        logger.info("Student created: id=%s", student.id)
        return StudentResponse.model_validate(student)

    async def update_student(
        self,
        db: AsyncSession,
        student_id: str,
        payload: StudentUpdate,
    ) -> StudentResponse:
        """
        Apply a partial update.

        Only fields supplied with a non-null value are written; the rest keep
        their stored value. An empty body returns the record unchanged.

        Raises:
            NotFoundError: No student with that id, or it was deleted concurrently (→ 404)
            ValidationError: A supplied field is empty or malformed (→ 400)
            UniqueConstraintError: The new email belongs to another student (→ 400)
            StoreUnavailableError: Update failed for another reason (→ 500)
        """
        changes = payload.changes()

        try:
            student = await self._load(db, student_id)
            for field, value in changes.items():
                setattr(student, field, value)
            if changes:
                await db.flush()
                await db.refresh(student)
                await db.commit()
        except AcademiaError:
            raise
        except StaleDataError as e:
            raise self._not_found(student_id) from e
        except IntegrityError as e:
            logger.info("Duplicate email rejected on update of %s: %s", student_id, changes.get("email"))
            raise UniqueConstraintError(field="email", value=changes.get("email")) from e
        except SQLAlchemyError as e:
            raise self._store_error(e, "actualizar el estudiante") from e

        logger.info("Student updated: id=%s fields=%s", student.id, sorted(changes))
        return StudentResponse.model_validate(student)

    async def delete_student(self, db: AsyncSession, student_id: str) -> DeleteResponse:
        """
        Hard-delete a student.

        A single conditional DELETE decides existence and removal together,
        so of two concurrent deletes for the same id exactly one succeeds.

        Raises:
            NotFoundError: No student with that id (→ 404)
            StoreUnavailableError: Delete failed (→ 500)
        """
        pk = parse_student_id(student_id)
        if pk is None:
            raise self._not_found(student_id)

        try:
            result = await db.execute(delete(Student).where(Student.id == pk))
            if result.rowcount == 0:
                raise self._not_found(student_id)
            await db.commit()
        except SQLAlchemyError as e:
            raise self._store_error(e, "eliminar el estudiante") from e

        logger.info("Student deleted: id=%s", pk)
        return DeleteResponse(mensaje=DELETED_MESSAGE, id=student_id)


# ── Dependency ────────────────────────────────────────────────────────────
def get_student_service(request: Request) -> StudentService:
    """FastAPI dependency returning the service built by create_app()."""
    return request.app.state.student_service
