"""
Academia API — Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions, one per failure class a request can end in.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by the ORM model validators and the service layer.

Exception Hierarchy:
    AcademiaError (base)
    ├── ValidationError          → 400 Bad Request (missing field, bad format)
    ├── UniqueConstraintError    → 400 Bad Request (value already taken)
    ├── NotFoundError            → 404 Not Found
    └── StoreUnavailableError    → 500 Internal Server Error (generic message)

Handlers dispatch on the exception class; nothing inspects error names or
message text to decide a status code.
"""

from typing import Any, Dict, Optional


class AcademiaError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only field names are returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AcademiaError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, empty name, malformed email.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UniqueConstraintError(AcademiaError):
    """
    Raised when a write would duplicate a value that must be unique.

    When:    Creating or updating a student with an email that is already taken.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        field: str,
        value: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"El valor de '{field}' ya está registrado"
        if value:
            message = f"El {field} '{value}' ya está registrado"
        ctx = context or {}
        ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        self.value = value


class NotFoundError(AcademiaError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None (or zero affected rows) for missing records;
    the service layer converts that into this exception.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        message: str = "Recurso no encontrado",
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class StoreUnavailableError(AcademiaError):
    """
    Raised when a database operation fails for reasons the client cannot fix.

    When:    Database file unreadable, locked, connection lost mid-query.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The original
        driver error is kept in context and logged server-side only.
    """

    def __init__(
        self,
        message: str = "Error interno del servidor. Intente nuevamente.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
