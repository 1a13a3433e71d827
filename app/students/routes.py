"""FastAPI routes for students."""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from db import StudentPool, get_pool
from students.service import StudentService

from students.schemas import DeleteResponse, StudentPayload, StudentResponse


router = APIRouter(prefix="/api/students", tags=["students"])


def get_student_service(pool: StudentPool = Depends(get_pool)) -> StudentService:
    return StudentService(pool)


# Plain `def` routes: FastAPI runs them in its thread pool, the DB pool
# bounds how many hit MySQL at once.
@router.get("", response_model=List[StudentResponse])
def list_students(
    q: Optional[str] = Query(None, description="Substring of full_name"),
    service: StudentService = Depends(get_student_service),
):
    """List students ordered by id, optionally searched by name."""
    return service.list_students(q)


@router.get("/{student_id}", response_model=StudentResponse)
def get_student(
    student_id: str,
    service: StudentService = Depends(get_student_service),
):
    return service.get_student(student_id)


@router.post("", response_model=StudentResponse, status_code=201)
def create_student(
    payload: Optional[StudentPayload] = Body(None),
    service: StudentService = Depends(get_student_service),
):
    """Create a student; 409 when student_code is taken."""
    return service.create_student(payload)


@router.put("/{student_id}", response_model=StudentResponse)
def update_student(
    student_id: str,
    payload: Optional[StudentPayload] = Body(None),
    service: StudentService = Depends(get_student_service),
):
    """Replace all mutable fields of a student."""
    return service.update_student(student_id, payload)


@router.delete("/{student_id}", response_model=DeleteResponse)
def delete_student(
    student_id: str,
    service: StudentService = Depends(get_student_service),
):
    return service.delete_student(student_id)
