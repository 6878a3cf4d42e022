"""
Seed de demostración: una escuela, un grupo, un docente, un alumno y una prueba
con los ocho tipos de pregunta asignada al grupo durante los próximos 7 días.

Ejecutar con:
    python -m app.db.seed_demo
"""
from datetime import timedelta
from typing import Dict

from sqlalchemy.orm import Session

from app.crud import crud_user
from app.db.models_registry import Base
from app.db.session import engine, SessionLocal
from app.models.assessment import Test, TestAssignment, TestQuestion
from app.models.school import SchoolClass, School, Subject
from app.utils.time_utils import utc_now

DEMO_PASSWORD = "demo12345"
TEACHER_EMAIL = "docente@demo.school"
STUDENT_EMAIL = "alumno@demo.school"
TEST_TITLE = "Evaluación diagnóstica de ciencias"

# ── Preguntas: (tipo, texto, opciones, respuesta correcta, puntaje) ───────────
QUESTIONS = [
    ("singlechoice", "¿Cuál es el planeta más cercano al Sol?",
     ["Venus", "Mercurio", "Marte", "Tierra"], 1, 1),
    ("multiplechoice", "Selecciona los gases nobles.",
     ["Helio", "Oxígeno", "Neón", "Nitrógeno"], [0, 2], 2),
    ("truefalse", "El agua hierve a 100 °C al nivel del mar.",
     None, True, 1),
    ("shortanswer", "¿Cuál es el símbolo químico del sodio?",
     None, ["Na"], 1),
    ("ordering", "Ordena las fases de la mitosis.",
     ["Anafase", "Profase", "Telofase", "Metafase"],
     ["Profase", "Metafase", "Anafase", "Telofase"], 2),
    ("matching", "Relaciona cada órgano con su sistema.",
     {"left": ["Corazón", "Pulmón", "Estómago"],
      "right": ["Digestivo", "Circulatorio", "Respiratorio"]},
     ["Circulatorio", "Respiratorio", "Digestivo"], 2),
    ("fillblanks", "La fórmula del agua es __ y la del dióxido de carbono es __.",
     None, ["H2O", "CO2"], 2),
    ("imagebased", "¿Qué orgánulo señala la flecha?",
     ["Núcleo", "Mitocondria", "Ribosoma"], 1, 1),
]


def seed(db: Session) -> Dict[str, int]:
    """
    Inserta los datos de demostración (idempotente por email y título).
    Devuelve los IDs relevantes.
    """
    teacher = crud_user.get_user_by_email(db, TEACHER_EMAIL)
    if teacher is None:
        school = School(name="Escuela Demo")
        db.add(school)
        db.commit()
        teacher = crud_user.create_user(
            db, TEACHER_EMAIL, DEMO_PASSWORD, full_name="Docente Demo",
            role="teacher", school_id=school.id,
        )
    school_id = teacher.school_id

    student = crud_user.get_user_by_email(db, STUDENT_EMAIL)
    if student is None:
        student = crud_user.create_user(
            db, STUDENT_EMAIL, DEMO_PASSWORD, full_name="Alumno Demo",
            role="student", school_id=school_id,
        )

    test = db.query(Test).filter_by(title=TEST_TITLE).first()
    if test is None:
        subject = Subject(school_id=school_id, name="Ciencias", color="green")
        school_class = SchoolClass(school_id=school_id, name="3° A")
        db.add_all([subject, school_class])
        db.flush()

        test = Test(
            school_id=school_id, teacher_id=teacher.id, subject_id=subject.id,
            title=TEST_TITLE, description="Repaso de conceptos básicos",
            duration_minutes=30, passing_score=60, max_attempts=2,
            shuffle_questions=True, is_published=True,
        )
        db.add(test)
        db.flush()

        for order, (q_type, text, options, correct, marks) in enumerate(QUESTIONS, start=1):
            db.add(TestQuestion(
                test_id=test.id, question_type=q_type, question_text=text,
                options=options, correct_answer=correct, marks=marks, order_number=order,
            ))

        now = utc_now()
        assignment = TestAssignment(
            test_id=test.id, class_id=school_class.id,
            start_date=now - timedelta(hours=1), end_date=now + timedelta(days=7),
        )
        db.add(assignment)
        db.commit()
        crud_user.enroll_student(db, school_class.id, student.id)
    else:
        assignment = db.query(TestAssignment).filter_by(test_id=test.id).first()

    return {
        "teacher_id": teacher.id,
        "student_id": student.id,
        "test_id": test.id,
        "assignment_id": assignment.id,
    }


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ids = seed(db)
        print(f"Seed completado: {ids}")
        print(f"Alumno: {STUDENT_EMAIL} / {DEMO_PASSWORD}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
