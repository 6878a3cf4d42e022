from typing import Optional
from sqlalchemy.orm import Session

from app.core.security import get_password_hash, verify_password
from app.models.school import ClassStudent, User


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Obtiene un usuario por su email.
    """
    return db.query(User).filter(User.email == email).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Autentica un usuario verificando email y contraseña.
    """
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        return None
    return user


def create_user(
    db: Session,
    email: str,
    password: str,
    full_name: str = None,
    role: str = "student",
    school_id: int = None,
) -> User:
    db_user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name or email.split('@')[0],  # Usar email como fallback
        role=role,
        school_id=school_id,
        is_active=True,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def enroll_student(db: Session, class_id: int, student_id: int) -> ClassStudent:
    """
    Inscribe al alumno en el grupo (o reactiva su membresía).
    """
    membership = db.query(ClassStudent).filter(
        ClassStudent.class_id == class_id,
        ClassStudent.student_id == student_id,
    ).first()
    if membership is None:
        membership = ClassStudent(class_id=class_id, student_id=student_id)
        db.add(membership)
    membership.is_active = True
    db.commit()
    db.refresh(membership)
    return membership
