from typing import Optional
from pydantic import BaseModel


class Token(BaseModel):
    """
    Schema para el token de acceso devuelto por la API.
    """
    access_token: str
    token_type: str


class TokenPayload(BaseModel):
    """
    Schema para el payload del token JWT.
    """
    sub: Optional[str] = None
