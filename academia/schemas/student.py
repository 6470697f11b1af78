"""
Academia API — Pydantic Request/Response Schemas
=================================================

What:  Pydantic models defining the JSON contract of the /estudiantes API.
How:   FastAPI uses these models to parse request bodies, serialize responses,
       and generate the OpenAPI documentation.

Request bodies are deliberately permissive (every field optional): the
"both fields are required" rule and the email format rule are enforced by
the service and the ORM model so they answer 400 with a readable message
instead of FastAPI's generic 422.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class StudentCreate(BaseModel):
    """Body of POST /estudiantes. `name` is accepted as an alias of `nombre`."""
    nombre: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("nombre", "name"),
        description="Nombre completo del estudiante (obligatorio)",
    )
    email: Optional[str] = Field(
        default=None,
        description="Email único del estudiante (obligatorio)",
    )


class StudentUpdate(BaseModel):
    """
    Body of PUT /estudiantes/{id}.

    Partial update: a field that is absent or null keeps its stored value.
    A field that is present overwrites it, and an empty string is rejected
    by the model validators rather than ignored.
    """
    nombre: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("nombre", "name"),
    )
    email: Optional[str] = Field(default=None)

    def changes(self) -> dict:
        """Fields supplied with a non-null value."""
        return self.model_dump(exclude_none=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class StudentResponse(BaseModel):
    """A persisted student, as returned by every read or write endpoint."""
    id: int = Field(description="Identificador asignado por la base de datos")
    nombre: str
    email: str
    created_at: datetime = Field(
        serialization_alias="createdAt",
        description="Fecha de creación (UTC)",
    )
    updated_at: datetime = Field(
        serialization_alias="updatedAt",
        description="Fecha de la última modificación (UTC)",
    )

    # Timestamps leave the API as createdAt / updatedAt
    model_config = {"from_attributes": True}


class DeleteResponse(BaseModel):
    """Confirmation returned by DELETE /estudiantes/{id} with status 200."""
    mensaje: str = Field(default="Estudiante eliminado correctamente")
    id: str = Field(description="El id tal como llegó en la ruta")


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    400 and 500 carry the message under `error`, 404 under `mensaje`:
        {"error": "El email 'ana@x.com' ya está registrado", "codigo": "unique_violation", ...}
        {"mensaje": "Estudiante no encontrado", "codigo": "not_found", "request_id": "1f2e3d4c"}
    """
    error: Optional[str] = Field(default=None, description="Error description (400, 500)")
    mensaje: Optional[str] = Field(default=None, description="Error description (404)")
    codigo: str = Field(description="Machine-readable error code")
    detalles: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
