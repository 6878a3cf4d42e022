# app/services/attempt_service.py
"""
Ciclo de vida de un intento: NotStarted -> InProgress -> Completed (terminal).

- start: valida elegibilidad, crea o reanuda el intento y devuelve las preguntas
  (barajadas con la semilla del intento si la prueba lo pide) sin respuestas correctas.
- get: lectura del intento propio; las respuestas correctas solo se exponen al completar.
- save_progress: sobrescribe respuestas y telemetría sin calificar.
- submit: califica, calcula puntaje y cierra el intento exactamente una vez.

No existe expiración del lado del servidor: un intento abierto puede enviarse
después de end_date; se registra como envío tardío.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core import metrics
from app.core.exceptions import AttemptValidationError, ForbiddenError, NotFoundError
from app.core.logging_config import get_attempt_logger, log_attempt_event
from app.crud import crud_attempt
from app.models.assessment import Test, TestAssignment, TestAttempt, TestQuestion
from app.services import eligibility, grader
from app.services.shuffler import shuffle
from app.services.telemetry import Telemetry
from app.utils.time_utils import as_utc, utc_now

logger = get_attempt_logger()

MSG_NOT_FOUND = "Attempt not found"
MSG_ACTIVE_NOT_FOUND = "Active attempt not found"
MSG_BAD_ANSWERS = "Answers must be an object keyed by question id"


def question_to_dict(question: TestQuestion, include_answer: bool = False) -> Dict[str, Any]:
    data = {
        "id": question.id,
        "question_type": question.question_type,
        "question_text": question.question_text,
        "options": question.options,
        "marks": question.marks,
        "order_number": question.order_number,
        "media_url": question.media_url,
    }
    if include_answer:
        data["correct_answer"] = question.correct_answer
    return data


def attempt_to_dict(attempt: TestAttempt, test: Test, assignment: TestAssignment) -> Dict[str, Any]:
    return {
        "id": attempt.id,
        "test_id": attempt.test_id,
        "assignment_id": attempt.assignment_id,
        "student_id": attempt.student_id,
        "started_at": as_utc(attempt.started_at),
        "submitted_at": as_utc(attempt.submitted_at),
        "is_completed": attempt.is_completed,
        "answers": attempt.answers or {},
        "score": attempt.score,
        "max_score": attempt.max_score,
        "percentage": attempt.percentage,
        "time_spent_seconds": attempt.time_spent_seconds,
        "tab_switches": attempt.tab_switches,
        "copy_attempts": attempt.copy_attempts,
        "suspicious_activity": attempt.suspicious_activity or [],
        "test_title": test.title,
        "duration_minutes": test.duration_minutes,
        "passing_score": test.passing_score,
        "block_copy_paste": test.block_copy_paste,
        "track_tab_switches": test.track_tab_switches,
        "fullscreen_required": test.fullscreen_required,
        "start_date": as_utc(assignment.start_date),
        "end_date": as_utc(assignment.end_date),
    }


def _answers_or_error(answers: Any) -> Dict[str, Any]:
    if answers is None:
        return {}
    if not isinstance(answers, dict):
        raise AttemptValidationError(MSG_BAD_ANSWERS)
    return answers


class AttemptService:

    def ordered_questions(
        self, test: Test, questions: List[TestQuestion], attempt: TestAttempt
    ) -> List[TestQuestion]:
        """
        Orden de presentación: barajado con el ID del intento mientras esté abierto.
        """
        if test.shuffle_questions and not attempt.is_completed:
            return shuffle(questions, attempt.id)
        return questions

    def start(
        self, db: Session, student_id: int, assignment_id: int, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        now = as_utc(now) if now else utc_now()
        result = eligibility.can_start(db, student_id, assignment_id, now=now)
        if not result.ok:
            metrics.attempt_errors_total.labels(operation="start", error=result.error).inc()
            log_attempt_event(
                logger, "start", student_id=student_id, assignment_id=assignment_id,
                success=False, error_code=result.error, reason=result.reason,
            )
            if result.error == eligibility.FORBIDDEN:
                raise ForbiddenError(result.reason)
            raise AttemptValidationError(result.reason)

        assignment, test = result.assignment, result.test
        questions = crud_attempt.get_questions(db, test.id)

        if result.open_attempt is not None:
            attempt, created = result.open_attempt, False
        else:
            # max_score se congela con el puntaje actual de la prueba
            max_score = sum(float(q.marks or 0) for q in questions)
            attempt, created = crud_attempt.create_attempt(
                db, assignment, student_id, max_score=max_score, started_at=now
            )

        outcome = "created" if created else "resumed"
        metrics.attempts_started_total.labels(outcome=outcome).inc()
        log_attempt_event(
            logger, outcome, attempt_id=attempt.id, student_id=student_id,
            assignment_id=assignment_id,
        )

        ordered = self.ordered_questions(test, questions, attempt)
        return {
            "message": "Test attempt started" if created else "You have an ongoing attempt",
            "attempt_id": attempt.id,
            "started_at": as_utc(attempt.started_at),
            "duration_minutes": test.duration_minutes,
            "questions": [question_to_dict(q) for q in ordered],
            "resumed": not created,
        }

    def get(self, db: Session, attempt_id: int, student_id: int) -> Dict[str, Any]:
        attempt = crud_attempt.get_attempt_for_student(db, attempt_id, student_id)
        if attempt is None:
            raise NotFoundError(MSG_NOT_FOUND)

        test = attempt.test
        questions = crud_attempt.get_questions(db, attempt.test_id)
        ordered = self.ordered_questions(test, questions, attempt)
        return {
            "attempt": attempt_to_dict(attempt, test, attempt.assignment),
            "questions": [question_to_dict(q, include_answer=attempt.is_completed) for q in ordered],
        }

    def save_progress(
        self, db: Session, attempt_id: int, student_id: int, answers: Any, telemetry: Telemetry
    ) -> None:
        answers = _answers_or_error(answers)
        saved = crud_attempt.save_progress(
            db, attempt_id, student_id, answers=answers, telemetry=telemetry.as_columns()
        )
        if not saved:
            metrics.attempt_errors_total.labels(operation="save", error="not_found").inc()
            log_attempt_event(
                logger, "save", attempt_id=attempt_id, student_id=student_id,
                success=False, error_code="not_found",
            )
            raise NotFoundError(MSG_ACTIVE_NOT_FOUND)

        metrics.attempt_progress_saves_total.inc()
        log_attempt_event(
            logger, "save", attempt_id=attempt_id, student_id=student_id,
            tab_switches=telemetry.tab_switches, copy_attempts=telemetry.copy_attempts,
        )

    def submit(
        self,
        db: Session,
        attempt_id: int,
        student_id: int,
        answers: Any,
        telemetry: Telemetry,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = as_utc(now) if now else utc_now()
        attempt = crud_attempt.get_attempt_for_student(db, attempt_id, student_id, open_only=True)
        if attempt is None:
            metrics.attempt_errors_total.labels(operation="submit", error="not_found").inc()
            raise NotFoundError(MSG_ACTIVE_NOT_FOUND)
        answers = _answers_or_error(answers)

        test, assignment = attempt.test, attempt.assignment
        max_score = float(attempt.max_score or 0)
        passing_score = test.passing_score
        late = now >= as_utc(assignment.end_date)

        summary = grader.grade_attempt(crud_attempt.get_questions(db, attempt.test_id), answers)
        percentage = grader.compute_percentage(summary.score, max_score)
        time_spent = max(0, int((now - as_utc(attempt.started_at)).total_seconds()))

        completed = crud_attempt.complete_attempt(
            db, attempt_id, student_id,
            graded_answers=summary.graded_answers,
            score=summary.score,
            percentage=percentage,
            time_spent_seconds=time_spent,
            submitted_at=now,
            telemetry=telemetry.as_columns(),
        )
        if not completed:
            # Otro envío concurrente cerró el intento primero
            metrics.attempt_errors_total.labels(operation="submit", error="not_found").inc()
            log_attempt_event(
                logger, "submit", attempt_id=attempt_id, student_id=student_id,
                success=False, error_code="not_found",
            )
            raise NotFoundError(MSG_ACTIVE_NOT_FOUND)

        passed = grader.is_passed(percentage, passing_score)
        metrics.attempts_submitted_total.labels(passed=str(passed).lower()).inc()
        log_attempt_event(
            logger, "submit", attempt_id=attempt_id, student_id=student_id,
            score=summary.score, percentage=round(percentage, 2), late=late,
        )
        if late:
            logger.warning(
                f"Envío tardío: attempt={attempt_id} enviado después de end_date",
                extra={"attempt_id": attempt_id, "event": "late_submission"},
            )

        return {
            "message": "Test submitted successfully",
            "score": summary.score,
            "max_score": max_score,
            "percentage": round(percentage, 2),
            "passed": passed,
            "time_spent_seconds": time_spent,
        }


attempt_service = AttemptService()
