"""
Fixtures compartidas: SQLite en memoria, cliente HTTP y datos mínimos de escuela.
"""
import os
import tempfile

# Configurar entorno antes de importar la aplicación
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="school-testing-logs-"))

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.crud import crud_user
from app.db.models_registry import Base
from app.db.session import SessionLocal, engine
from app.main import app
from app.models import assessment
from app.models.school import School, SchoolClass, Subject
from app.utils.time_utils import utc_now

PASSWORD = "secret123"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def school(db):
    school = School(name="Escuela de Pruebas")
    db.add(school)
    db.commit()
    return school


@pytest.fixture
def subject(db, school):
    subject = Subject(school_id=school.id, name="Matemáticas", color="blue")
    db.add(subject)
    db.commit()
    return subject


@pytest.fixture
def school_class(db, school):
    school_class = SchoolClass(school_id=school.id, name="2° B")
    db.add(school_class)
    db.commit()
    return school_class


@pytest.fixture
def teacher(db, school):
    return crud_user.create_user(
        db, "teacher@example.com", PASSWORD, role="teacher", school_id=school.id
    )


@pytest.fixture
def student(db, school, school_class):
    user = crud_user.create_user(
        db, "student@example.com", PASSWORD, role="student", school_id=school.id
    )
    crud_user.enroll_student(db, school_class.id, user.id)
    return user


@pytest.fixture
def other_student(db, school):
    """Alumno de la misma escuela que NO pertenece al grupo."""
    return crud_user.create_user(
        db, "other@example.com", PASSWORD, role="student", school_id=school.id
    )


@pytest.fixture
def make_test(db, school, subject, teacher):
    """
    Fábrica de pruebas. `questions` es una lista de
    (tipo, respuesta correcta, puntaje).
    """
    def _make(questions, **kwargs):
        data = dict(
            school_id=school.id, teacher_id=teacher.id, subject_id=subject.id,
            title="Prueba de álgebra", duration_minutes=45, passing_score=60,
            max_attempts=1, shuffle_questions=False,
        )
        data.update(kwargs)
        test = assessment.Test(**data)
        db.add(test)
        db.flush()
        for order, (q_type, correct, marks) in enumerate(questions, start=1):
            db.add(assessment.TestQuestion(
                test_id=test.id, question_type=q_type,
                question_text=f"Pregunta {order}", options=["A", "B", "C", "D"],
                correct_answer=correct, marks=marks, order_number=order,
            ))
        db.commit()
        return test
    return _make


@pytest.fixture
def sample_test(make_test):
    # Puntaje total 6: 1 + 2 + 3
    return make_test([
        ("singlechoice", 1, 1),
        ("multiplechoice", [0, 2], 2),
        ("shortanswer", ["Paris", "París"], 3),
    ])


@pytest.fixture
def make_assignment(db, school_class):
    def _make(test, start_offset=timedelta(hours=-1), end_offset=timedelta(hours=1), **kwargs):
        now = utc_now()
        assignment = assessment.TestAssignment(
            test_id=test.id, class_id=school_class.id,
            start_date=now + start_offset, end_date=now + end_offset, **kwargs
        )
        db.add(assignment)
        db.commit()
        return assignment
    return _make


@pytest.fixture
def assignment(make_assignment, sample_test):
    return make_assignment(sample_test)


def auth_headers_for(user):
    token = create_access_token(subject=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(student):
    return auth_headers_for(student)


def question_ids(db, test):
    """IDs de las preguntas en su orden base."""
    return [
        q.id for q in db.query(assessment.TestQuestion)
        .filter(assessment.TestQuestion.test_id == test.id)
        .order_by(assessment.TestQuestion.order_number)
    ]
