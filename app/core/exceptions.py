# app/core/exceptions.py
"""
Errores de dominio del motor de evaluaciones.
Cada error conoce su código ('forbidden', 'validation_error', 'not_found')
y el status HTTP con el que se expone.
"""
from fastapi import status


class AssessmentError(Exception):
    error_code = "server_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error_code, "message": self.message}


class ForbiddenError(AssessmentError):
    error_code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class AttemptValidationError(AssessmentError):
    error_code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AssessmentError):
    error_code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
