"""
Schemas Pydantic para Autenticação.
"""

from pydantic import BaseModel, EmailStr, Field

from app.schemas.users import UserRead


class UserLogin(BaseModel):
    """Schema para login de usuário."""

    email: EmailStr
    password: str = Field(..., min_length=6)


class Token(BaseModel):
    """Schema para resposta de token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead

