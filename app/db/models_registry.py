# app/db/models_registry.py
# Este archivo importa todos los modelos para que Alembic y create_all los detecten
# Se importa en alembic/env.py y en la configuración de pruebas

from app.db.base import Base
from app.models.school import School, User, Subject, SchoolClass, ClassStudent
from app.models.assessment import Test, TestQuestion, TestAssignment, TestAttempt

# Exportar Base para uso en Alembic
__all__ = [
    "Base", "School", "User", "Subject", "SchoolClass", "ClassStudent",
    "Test", "TestQuestion", "TestAssignment", "TestAttempt",
]
