from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from app.models.assessment import TestAssignment, TestAttempt, TestQuestion
from app.models.school import ClassStudent


def get_assignment(db: Session, assignment_id: int) -> Optional[TestAssignment]:
    return db.query(TestAssignment).filter(TestAssignment.id == assignment_id).first()


def is_active_member(db: Session, class_id: int, student_id: int) -> bool:
    """
    Verifica que el alumno pertenezca (activo) al grupo.
    """
    return db.query(ClassStudent.id).filter(
        ClassStudent.class_id == class_id,
        ClassStudent.student_id == student_id,
        ClassStudent.is_active == True,
    ).first() is not None


def get_questions(db: Session, test_id: int) -> List[TestQuestion]:
    """
    Preguntas de la prueba en su orden base.
    """
    return (
        db.query(TestQuestion)
        .filter(TestQuestion.test_id == test_id)
        .order_by(TestQuestion.order_number.asc(), TestQuestion.id.asc())
        .all()
    )


def get_open_attempt(db: Session, assignment_id: int, student_id: int) -> Optional[TestAttempt]:
    return db.query(TestAttempt).filter(
        TestAttempt.assignment_id == assignment_id,
        TestAttempt.student_id == student_id,
        TestAttempt.is_completed == False,
    ).first()


def count_attempts(db: Session, assignment_id: int, student_id: int) -> int:
    """
    Cuenta intentos abiertos y completados del alumno en la asignación.
    """
    return db.query(func.count(TestAttempt.id)).filter(
        TestAttempt.assignment_id == assignment_id,
        TestAttempt.student_id == student_id,
    ).scalar() or 0


def get_attempt_for_student(
    db: Session, attempt_id: int, student_id: int, open_only: bool = False
) -> Optional[TestAttempt]:
    """
    Obtiene un intento solo si pertenece al alumno.
    Con open_only=True además exige que siga abierto.
    """
    query = db.query(TestAttempt).filter(
        TestAttempt.id == attempt_id,
        TestAttempt.student_id == student_id,
    )
    if open_only:
        query = query.filter(TestAttempt.is_completed == False)
    return query.first()


def create_attempt(
    db: Session,
    assignment: TestAssignment,
    student_id: int,
    max_score: float,
    started_at: datetime,
) -> Tuple[TestAttempt, bool]:
    """
    Crea un intento abierto. Devuelve (intento, creado).

    El índice único parcial uq_test_attempts_open impide dos intentos abiertos
    para el mismo (asignación, alumno); si otra petición ganó la carrera se
    devuelve el intento abierto existente con creado=False.
    """
    db_attempt = TestAttempt(
        test_id=assignment.test_id,
        assignment_id=assignment.id,
        student_id=student_id,
        started_at=started_at,
        max_score=max_score,
        is_completed=False,
        answers={},
        tab_switches=0,
        copy_attempts=0,
        suspicious_activity=[],
    )
    db.add(db_attempt)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_open_attempt(db, assignment.id, student_id)
        if existing is None:
            raise
        return existing, False

    db.refresh(db_attempt)
    return db_attempt, True


def save_progress(
    db: Session,
    attempt_id: int,
    student_id: int,
    answers: Any,
    telemetry: Dict[str, Any],
) -> bool:
    """
    Sobrescribe respuestas y telemetría de un intento abierto.
    Devuelve False si el intento no existe, no es del alumno o ya fue enviado.
    """
    stmt = (
        update(TestAttempt)
        .where(
            TestAttempt.id == attempt_id,
            TestAttempt.student_id == student_id,
            TestAttempt.is_completed == False,
        )
        .values(answers=answers, **telemetry)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount == 0:
        db.rollback()
        return False
    db.commit()
    return True


def complete_attempt(
    db: Session,
    attempt_id: int,
    student_id: int,
    graded_answers: Dict[str, Any],
    score: float,
    percentage: float,
    time_spent_seconds: int,
    submitted_at: datetime,
    telemetry: Dict[str, Any],
) -> bool:
    """
    Transición única InProgress -> Completed.

    El UPDATE condicional (is_completed = false) garantiza que solo un envío
    concurrente gana; el perdedor recibe False y no modifica nada.
    """
    stmt = (
        update(TestAttempt)
        .where(
            TestAttempt.id == attempt_id,
            TestAttempt.student_id == student_id,
            TestAttempt.is_completed == False,
        )
        .values(
            answers=graded_answers,
            score=score,
            percentage=percentage,
            time_spent_seconds=time_spent_seconds,
            submitted_at=submitted_at,
            is_completed=True,
            **telemetry,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount == 0:
        db.rollback()
        return False
    db.commit()
    return True
