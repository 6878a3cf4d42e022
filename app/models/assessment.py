# app/models/assessment.py
from sqlalchemy import (
    Boolean, Column, Float, Index, Integer, String, Text, ForeignKey,
    JSON, TIMESTAMP, func, text
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.db.base import Base

# JSONB en Postgres, JSON genérico en SQLite (pruebas)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Test(Base):
    __tablename__ = 'tests'

    id = Column(Integer, primary_key=True)
    school_id = Column(Integer, ForeignKey('schools.id'), nullable=True)
    teacher_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    subject_id = Column(Integer, ForeignKey('subjects.id'), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    duration_minutes = Column(Integer, nullable=False, default=60)
    passing_score = Column(Float, nullable=False, default=60)   # porcentaje 0-100
    max_attempts = Column(Integer, nullable=False, default=1)
    shuffle_questions = Column(Boolean, nullable=False, default=False)

    # Banderas anti-trampa, interpretadas por el cliente
    block_copy_paste = Column(Boolean, nullable=False, default=True)
    track_tab_switches = Column(Boolean, nullable=False, default=True)
    fullscreen_required = Column(Boolean, nullable=False, default=False)

    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    questions = relationship(
        "TestQuestion", back_populates="test", order_by="TestQuestion.order_number"
    )


class TestQuestion(Base):
    __tablename__ = 'test_questions'

    id = Column(Integer, primary_key=True)
    test_id = Column(Integer, ForeignKey('tests.id'), nullable=False, index=True)
    # singlechoice, multiplechoice, truefalse, shortanswer,
    # ordering, matching, fillblanks, imagebased
    question_type = Column(String(30), nullable=False)
    question_text = Column(Text, nullable=False)
    options = Column(JSONType)          # forma depende del tipo
    correct_answer = Column(JSONType)   # índice, lista de índices o textos
    marks = Column(Float, nullable=False, default=1)
    order_number = Column(Integer, nullable=False, default=0)
    media_url = Column(String(500))

    test = relationship("Test", back_populates="questions")


class TestAssignment(Base):
    """
    Asignación de una prueba a un grupo dentro de la ventana [start_date, end_date).
    """
    __tablename__ = 'test_assignments'

    id = Column(Integer, primary_key=True)
    test_id = Column(Integer, ForeignKey('tests.id'), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey('classes.id'), nullable=False, index=True)
    start_date = Column(TIMESTAMP(timezone=True), nullable=False)
    end_date = Column(TIMESTAMP(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    test = relationship("Test")


class TestAttempt(Base):
    """
    Intento de un alumno sobre una asignación.
    Nunca se elimina; solo puede existir un intento abierto por (asignación, alumno).
    """
    __tablename__ = 'test_attempts'

    id = Column(Integer, primary_key=True)
    test_id = Column(Integer, ForeignKey('tests.id'), nullable=False)
    assignment_id = Column(Integer, ForeignKey('test_assignments.id'), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    started_at = Column(TIMESTAMP(timezone=True), nullable=False)
    submitted_at = Column(TIMESTAMP(timezone=True), nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    answers = Column(JSONType, nullable=False, default=dict)
    score = Column(Float, nullable=True)
    max_score = Column(Float, nullable=False, default=0)
    percentage = Column(Float, nullable=True)
    time_spent_seconds = Column(Integer, nullable=True)

    # Telemetría anti-trampa (solo auditoría)
    tab_switches = Column(Integer, nullable=False, default=0)
    copy_attempts = Column(Integer, nullable=False, default=0)
    suspicious_activity = Column(JSONType, nullable=False, default=list)

    assignment = relationship("TestAssignment")
    test = relationship("Test")

    __table_args__ = (
        Index(
            'uq_test_attempts_open', 'assignment_id', 'student_id',
            unique=True,
            postgresql_where=text('is_completed = false'),
            sqlite_where=text('is_completed = 0'),
        ),
    )

    def __repr__(self):
        return (
            f"<TestAttempt(id={self.id}, assignment_id={self.assignment_id}, "
            f"student_id={self.student_id}, completed={self.is_completed})>"
        )
