# app/api/v1/endpoints/student.py
from typing import Any
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
import logging

from app.core.deps import get_current_student
from app.core.exceptions import ForbiddenError
from app.crud import crud_assignment, crud_attempt
from app.db.session import get_db
from app.models.school import User
from app.schemas.attempt import (
    AssignmentDetailResponse, AssignmentListResponse, AttemptDetailResponse,
    AttemptProgress, ResultListResponse, SaveProgressResponse,
    StartAttemptRequest, StartAttemptResponse, SubmitAttemptResponse,
)
from app.services import eligibility, telemetry
from app.services.attempt_service import attempt_service

router = APIRouter()
logger = logging.getLogger('app.api.student')


@router.get("/assignments", response_model=AssignmentListResponse)
def read_assignments(
    status_filter: str = Query(
        "all", alias="status", pattern="^(all|active|upcoming|completed)$",
        description="all, active, upcoming o completed",
    ),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
) -> Any:
    """
    Asignaciones de los grupos del alumno con el resumen de sus intentos.
    """
    assignments = crud_assignment.list_student_assignments(
        db, student_id=current_user.id, status=status_filter
    )
    return {"assignments": assignments}


@router.get("/assignments/{assignment_id}", response_model=AssignmentDetailResponse)
def read_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
) -> Any:
    assignment = crud_attempt.get_assignment(db, assignment_id)
    if assignment is None or not crud_attempt.is_active_member(db, assignment.class_id, current_user.id):
        raise ForbiddenError(eligibility.MSG_NO_ACCESS)

    return {
        "assignment": crud_assignment.get_assignment_details(db, assignment_id),
        "attempts": crud_assignment.list_student_attempts(db, assignment_id, current_user.id),
    }


@router.post("/attempts", response_model=StartAttemptResponse, status_code=status.HTTP_201_CREATED)
def start_attempt(
    payload: StartAttemptRequest,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
) -> Any:
    """
    Inicia un intento, o reanuda el intento abierto del alumno (200).
    """
    result = attempt_service.start(db, student_id=current_user.id, assignment_id=payload.assignment_id)
    if result["resumed"]:
        response.status_code = status.HTTP_200_OK
    return result


@router.get("/attempts/{attempt_id}", response_model=AttemptDetailResponse)
def read_attempt(
    attempt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
) -> Any:
    return attempt_service.get(db, attempt_id=attempt_id, student_id=current_user.id)


@router.put("/attempts/{attempt_id}/save", response_model=SaveProgressResponse)
def save_attempt(
    attempt_id: int,
    payload: AttemptProgress,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
) -> Any:
    attempt_service.save_progress(
        db,
        attempt_id=attempt_id,
        student_id=current_user.id,
        answers=payload.answers,
        telemetry=telemetry.capture(
            payload.tab_switches, payload.copy_attempts, payload.suspicious_activity
        ),
    )
    return {"ok": True, "message": "Progress saved"}


@router.put("/attempts/{attempt_id}/submit", response_model=SubmitAttemptResponse)
def submit_attempt(
    attempt_id: int,
    payload: AttemptProgress,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
) -> Any:
    """
    Califica y cierra el intento. Solo el primer envío tiene efecto.
    """
    return attempt_service.submit(
        db,
        attempt_id=attempt_id,
        student_id=current_user.id,
        answers=payload.answers,
        telemetry=telemetry.capture(
            payload.tab_switches, payload.copy_attempts, payload.suspicious_activity
        ),
    )


@router.get("/results", response_model=ResultListResponse)
def read_results(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
) -> Any:
    return {"results": crud_assignment.list_results(db, student_id=current_user.id)}
