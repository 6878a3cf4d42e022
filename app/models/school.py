# app/models/school.py
from sqlalchemy import (
    Boolean, Column, Integer, String, ForeignKey, UniqueConstraint,
    TIMESTAMP, func
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class School(Base):
    __tablename__ = 'schools'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class User(Base):
    """
    Usuario de la plataforma. El motor de evaluaciones solo atiende al rol 'student'.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default='student')  # 'student', 'teacher', 'admin'
    school_id = Column(Integer, ForeignKey('schools.id'), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class Subject(Base):
    __tablename__ = 'subjects'

    id = Column(Integer, primary_key=True)
    school_id = Column(Integer, ForeignKey('schools.id'), nullable=False)
    name = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False, default='gray')


class SchoolClass(Base):
    __tablename__ = 'classes'

    id = Column(Integer, primary_key=True)
    school_id = Column(Integer, ForeignKey('schools.id'), nullable=False)
    name = Column(String(100), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    members = relationship("ClassStudent", back_populates="school_class")


class ClassStudent(Base):
    __tablename__ = 'class_students'

    id = Column(Integer, primary_key=True)
    class_id = Column(Integer, ForeignKey('classes.id'), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    joined_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    school_class = relationship("SchoolClass", back_populates="members")

    __table_args__ = (
        UniqueConstraint('class_id', 'student_id', name='uq_class_student'),
    )
