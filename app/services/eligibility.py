# app/services/eligibility.py
"""
Reglas para iniciar (o reanudar) un intento.

Orden de verificación, se detiene en el primer fallo:
1. El alumno es miembro activo del grupo de la asignación   -> forbidden
2. La asignación está activa y dentro de [start_date, end_date) -> validation_error
3. Ya existe un intento abierto                            -> éxito, se reanuda
4. Intentos realizados < max_attempts de la prueba         -> validation_error

Solo lectura: no modifica la base de datos.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.crud import crud_attempt
from app.models.assessment import Test, TestAssignment, TestAttempt
from app.utils.time_utils import as_utc, utc_now

FORBIDDEN = "forbidden"
VALIDATION_ERROR = "validation_error"

MSG_NO_ACCESS = "You do not have access to this assignment"
MSG_INACTIVE = "This assignment is not active"
MSG_NOT_STARTED = "This test has not started yet"
MSG_ENDED = "This test has ended"
MSG_MAX_ATTEMPTS = "You have reached the maximum number of attempts"


@dataclass
class EligibilityResult:
    ok: bool
    assignment: Optional[TestAssignment] = None
    test: Optional[Test] = None
    open_attempt: Optional[TestAttempt] = None
    error: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def deny(cls, error: str, reason: str, assignment=None, test=None) -> "EligibilityResult":
        return cls(ok=False, error=error, reason=reason, assignment=assignment, test=test)


def can_start(
    db: Session, student_id: int, assignment_id: int, now: Optional[datetime] = None
) -> EligibilityResult:
    now = as_utc(now) if now else utc_now()

    assignment = crud_attempt.get_assignment(db, assignment_id)
    # Una asignación inexistente se reporta igual que una ajena
    if assignment is None or not crud_attempt.is_active_member(db, assignment.class_id, student_id):
        return EligibilityResult.deny(FORBIDDEN, MSG_NO_ACCESS)

    test = assignment.test

    if not assignment.is_active:
        return EligibilityResult.deny(VALIDATION_ERROR, MSG_INACTIVE, assignment, test)
    if now < as_utc(assignment.start_date):
        return EligibilityResult.deny(VALIDATION_ERROR, MSG_NOT_STARTED, assignment, test)
    if now >= as_utc(assignment.end_date):
        return EligibilityResult.deny(VALIDATION_ERROR, MSG_ENDED, assignment, test)

    open_attempt = crud_attempt.get_open_attempt(db, assignment.id, student_id)
    if open_attempt is not None:
        return EligibilityResult(ok=True, assignment=assignment, test=test, open_attempt=open_attempt)

    if crud_attempt.count_attempts(db, assignment.id, student_id) >= test.max_attempts:
        return EligibilityResult.deny(VALIDATION_ERROR, MSG_MAX_ATTEMPTS, assignment, test)

    return EligibilityResult(ok=True, assignment=assignment, test=test)
