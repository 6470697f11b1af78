"""
Academia API — Student SQLAlchemy Model
========================================

What:  ORM model representing the `estudiantes` table.
How:   Inherits from the shared DeclarativeBase; init_schema() creates the
       table from this declaration at startup.
Who:   Used by StudentService for CRUD operations.

Table Design:
    - id: INTEGER autoincrement primary key, assigned by SQLite on insert
    - nombre: required, non-empty after stripping whitespace
    - email: required, syntactically valid, UNIQUE across all rows
    - created_at / updated_at: UTC bookkeeping timestamps, equal on insert,
      exposed as createdAt / updatedAt by the API

Store-level validation:
    @validates hooks run on every attribute assignment (constructor included),
    so malformed values raise ValidationError before any SQL is emitted.
    Uniqueness is enforced by the UNIQUE index and surfaces as IntegrityError
    on flush.
"""

from datetime import datetime, timezone

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import DateTime, Integer, String, TypeDecorator
from sqlalchemy.orm import Mapped, mapped_column, validates

from academia.database import Base
from academia.exceptions import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC datetime column.

    SQLite has no timezone storage: values are written as naive UTC and
    tagged with UTC again when read back.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Student(Base):
    """
    A student record.

    Lifecycle:
        1. Created by POST /estudiantes (id assigned by the database)
        2. Mutated in place by PUT /estudiantes/{id} (partial update)
        3. Hard-deleted by DELETE /estudiantes/{id}
    """

    __tablename__ = "estudiantes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    nombre: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @validates("nombre")
    def validate_nombre(self, key: str, value):
        if value is None or not str(value).strip():
            raise ValidationError(message="El nombre no puede estar vacío", field="nombre")
        return str(value).strip()

    @validates("email")
    def validate_email_address(self, key: str, value):
        if value is None or not str(value).strip():
            raise ValidationError(message="El email no puede estar vacío", field="email")
        value = str(value).strip()
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError(
                message=f"El email '{value}' no tiene un formato válido",
                field="email",
                context={"reason": str(e)},
            ) from e
        return value

    def __init__(self, **kwargs):
        # A new row starts with created_at == updated_at
        now = utcnow()
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, email='{self.email}')>"
