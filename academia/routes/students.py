"""
Academia API — Student Route Handlers
======================================

What:  The five /estudiantes endpoints.
How:   Each handler parses the request, delegates to StudentService, and
       returns the result with its status code. Failures are raised as
       application exceptions and turned into JSON by the global handlers.

Endpoints:
    GET    /estudiantes        → 200 list
    GET    /estudiantes/{id}   → 200 | 404
    POST   /estudiantes        → 201 | 400
    PUT    /estudiantes/{id}   → 200 | 400 | 404
    DELETE /estudiantes/{id}   → 200 {mensaje, id} | 404
    (any of them → 500 when the database fails)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academia.database import get_db_session
from academia.schemas.student import (
    DeleteResponse,
    ErrorResponse,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)
from academia.services.student_service import StudentService, get_student_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/estudiantes", tags=["Estudiantes"])

_SERVER_ERROR = {500: {"description": "Database error", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Estudiante no encontrado", "model": ErrorResponse}}
_BAD_REQUEST = {400: {"description": "Invalid or duplicate data", "model": ErrorResponse}}


@router.get(
    "",
    response_model=List[StudentResponse],
    responses={**_SERVER_ERROR},
    summary="List all students",
)
async def list_students(
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> List[StudentResponse]:
    return await service.list_students(db)


@router.get(
    "/{student_id}",
    response_model=StudentResponse,
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Get a student by id",
)
async def get_student(
    student_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> StudentResponse:
    """
    Args:
        student_id: Kept as a string. Ids that are not positive integers
                    answer 404 like any other id with no record.
    """
    return await service.get_student(db, student_id)


@router.post(
    "",
    status_code=201,
    response_model=StudentResponse,
    responses={**_BAD_REQUEST, **_SERVER_ERROR},
    summary="Create a student",
    description="Both `nombre` and `email` are required; the email must be valid and unused.",
)
async def create_student(
    payload: Optional[StudentCreate] = None,
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> StudentResponse:
    return await service.create_student(db, payload or StudentCreate())


@router.put(
    "/{student_id}",
    response_model=StudentResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Partially update a student",
    description="Fields omitted (or null) keep their current value.",
)
async def update_student(
    student_id: str,
    payload: Optional[StudentUpdate] = None,
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> StudentResponse:
    return await service.update_student(db, student_id, payload or StudentUpdate())


@router.delete(
    "/{student_id}",
    response_model=DeleteResponse,
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Delete a student",
    description="Hard delete. Answers 200 with a confirmation body rather than 204.",
)
async def delete_student(
    student_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: StudentService = Depends(get_student_service),
) -> DeleteResponse:
    return await service.delete_student(db, student_id)
