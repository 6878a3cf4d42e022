from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func, select

from app.models.assessment import Test, TestAssignment, TestAttempt, TestQuestion
from app.models.school import ClassStudent, SchoolClass, Subject
from app.utils.time_utils import as_utc, utc_now

ASSIGNMENT_STATUSES = ("all", "active", "upcoming", "completed")
RESULTS_LIMIT = 50


def _row_to_dict(row) -> Dict[str, Any]:
    data = dict(row._mapping)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = as_utc(value)
    return data


def _question_count():
    return (
        select(func.count(TestQuestion.id))
        .where(TestQuestion.test_id == Test.id)
        .scalar_subquery()
    )


def list_student_assignments(
    db: Session, student_id: int, status: str = "all", now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """
    Asignaciones activas de los grupos del alumno, con resumen de sus intentos.

    status: 'active' (ventana abierta), 'upcoming' (aún no inicia),
    'completed' (ventana cerrada) o 'all'.
    """
    now = as_utc(now) if now else utc_now()

    own_attempts = (
        TestAttempt.assignment_id == TestAssignment.id,
        TestAttempt.student_id == student_id,
    )
    attempts_made = select(func.count(TestAttempt.id)).where(*own_attempts).scalar_subquery()
    best_score = (
        select(func.max(TestAttempt.percentage))
        .where(*own_attempts, TestAttempt.is_completed == True)
        .scalar_subquery()
    )
    ongoing_attempt_id = (
        select(TestAttempt.id)
        .where(*own_attempts, TestAttempt.is_completed == False)
        .order_by(TestAttempt.started_at.desc())
        .limit(1)
        .scalar_subquery()
    )
    member_classes = select(ClassStudent.class_id).where(
        ClassStudent.student_id == student_id,
        ClassStudent.is_active == True,
    )

    query = (
        db.query(
            TestAssignment.id,
            TestAssignment.test_id,
            TestAssignment.class_id,
            TestAssignment.start_date,
            TestAssignment.end_date,
            Test.title.label("test_title"),
            Test.description.label("test_description"),
            Test.duration_minutes,
            Test.passing_score,
            Test.max_attempts,
            SchoolClass.name.label("class_name"),
            Subject.name.label("subject_name"),
            Subject.color.label("subject_color"),
            _question_count().label("question_count"),
            attempts_made.label("attempts_made"),
            best_score.label("best_score"),
            ongoing_attempt_id.label("ongoing_attempt_id"),
        )
        .join(Test, TestAssignment.test_id == Test.id)
        .join(SchoolClass, TestAssignment.class_id == SchoolClass.id)
        .outerjoin(Subject, Test.subject_id == Subject.id)
        .filter(
            TestAssignment.class_id.in_(member_classes),
            TestAssignment.is_active == True,
        )
    )

    if status == "active":
        query = query.filter(TestAssignment.start_date <= now, TestAssignment.end_date > now)
    elif status == "upcoming":
        query = query.filter(TestAssignment.start_date > now)
    elif status == "completed":
        query = query.filter(TestAssignment.end_date <= now)

    rows = query.order_by(TestAssignment.end_date.asc(), TestAssignment.id.asc()).all()
    return [_row_to_dict(row) for row in rows]


def get_assignment_details(db: Session, assignment_id: int) -> Optional[Dict[str, Any]]:
    row = (
        db.query(
            TestAssignment.id,
            TestAssignment.test_id,
            TestAssignment.class_id,
            TestAssignment.start_date,
            TestAssignment.end_date,
            TestAssignment.is_active,
            Test.title.label("test_title"),
            Test.description.label("test_description"),
            Test.duration_minutes,
            Test.passing_score,
            Test.max_attempts,
            SchoolClass.name.label("class_name"),
            Subject.name.label("subject_name"),
            Subject.color.label("subject_color"),
            _question_count().label("question_count"),
        )
        .join(Test, TestAssignment.test_id == Test.id)
        .join(SchoolClass, TestAssignment.class_id == SchoolClass.id)
        .outerjoin(Subject, Test.subject_id == Subject.id)
        .filter(TestAssignment.id == assignment_id)
        .first()
    )
    return _row_to_dict(row) if row else None


def list_student_attempts(db: Session, assignment_id: int, student_id: int) -> List[Dict[str, Any]]:
    """
    Intentos del alumno en una asignación, el más reciente primero.
    """
    rows = (
        db.query(
            TestAttempt.id,
            TestAttempt.started_at,
            TestAttempt.submitted_at,
            TestAttempt.score,
            TestAttempt.percentage,
            TestAttempt.is_completed,
        )
        .filter(TestAttempt.assignment_id == assignment_id, TestAttempt.student_id == student_id)
        .order_by(TestAttempt.started_at.desc(), TestAttempt.id.desc())
        .all()
    )
    return [_row_to_dict(row) for row in rows]


def list_results(db: Session, student_id: int, limit: int = RESULTS_LIMIT) -> List[Dict[str, Any]]:
    """
    Historial de intentos completados del alumno, el más reciente primero.
    """
    rows = (
        db.query(
            TestAttempt.id.label("attempt_id"),
            TestAttempt.started_at,
            TestAttempt.submitted_at,
            TestAttempt.score,
            TestAttempt.max_score,
            TestAttempt.percentage,
            TestAttempt.is_completed,
            Test.title.label("test_title"),
            Test.passing_score,
            Subject.name.label("subject_name"),
            Subject.color.label("subject_color"),
            TestAssignment.id.label("assignment_id"),
            SchoolClass.name.label("class_name"),
        )
        .join(Test, TestAttempt.test_id == Test.id)
        .join(TestAssignment, TestAttempt.assignment_id == TestAssignment.id)
        .join(SchoolClass, TestAssignment.class_id == SchoolClass.id)
        .outerjoin(Subject, Test.subject_id == Subject.id)
        .filter(TestAttempt.student_id == student_id, TestAttempt.is_completed == True)
        .order_by(TestAttempt.submitted_at.desc(), TestAttempt.id.desc())
        .limit(limit)
        .all()
    )
    return [_row_to_dict(row) for row in rows]
