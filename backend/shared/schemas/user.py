# backend/shared/schemas/user.py
"""
Schemas para usuarios y autenticación
"""
from typing import Literal, Optional

from pydantic import EmailStr, Field, model_validator

from .base import PartialUpdate, RequestBase

Role = Literal["user", "guide", "lead-guide", "admin"]


class PasswordConfirmMixin(RequestBase):
    password: str = Field(..., min_length=8, max_length=72)
    password_confirm: str

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Las contraseñas no coinciden")
        return self


class UserSignup(PasswordConfirmMixin):
    """El rol es texto libre: cualquier valor distinto de 'user' se rechaza con 403"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    photo: Optional[str] = None
    role: Optional[str] = None


class UserCreate(PasswordConfirmMixin):
    """Alta de usuarios por un administrador"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    photo: Optional[str] = None
    role: Role = "user"


class UserUpdate(PartialUpdate):
    """Actualización administrativa (nunca cambia la contraseña)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    photo: Optional[str] = None
    role: Optional[Role] = None
    active: Optional[bool] = None


class UpdateMeRequest(PartialUpdate):
    """Los campos de contraseña se aceptan solo para poder rechazarlos con 400"""
    nullable_fields = ("password", "password_confirm")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    photo: Optional[str] = None
    password: Optional[str] = None
    password_confirm: Optional[str] = None


class LoginRequest(RequestBase):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(RequestBase):
    email: EmailStr


class ResetPasswordRequest(PasswordConfirmMixin):
    pass


class UpdatePasswordRequest(PasswordConfirmMixin):
    password_current: str = Field(..., min_length=1)
