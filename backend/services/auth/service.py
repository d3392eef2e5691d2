from typing import Optional
from fastapi import status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.database.base import utcnow
from shared.database.models import User, UserRole
from shared.schemas.user import UserSignup
from shared.utils.email import EmailSender
from shared.utils.exceptions import (
    ForbiddenError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from shared.utils.logger import setup_logger
from shared.utils.security import COOKIE_NAME, create_access_token, hash_reset_token
# IMPORTACIÓN DE SETTINGS
from shared.config import settings
from services.users.service import user_handlers

logger = setup_logger(__name__)
settings = settings.get_settings()


def create_send_token(user: User, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Emitir el token, devolverlo en el cuerpo y replicarlo en la cookie 'jwt'"""
    token = create_access_token(user.id)

    response = JSONResponse(
        status_code=status_code,
        content={
            "status": "success",
            "token": token,
            "data": {"user": user.to_dict()},
        },
    )
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=settings.JWT_COOKIE_EXPIRES_IN_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


class AuthService:
    @staticmethod
    def signup(db: Session, user_in: UserSignup) -> User:
        # Nadie puede registrarse como admin, guide o lead-guide
        if user_in.role is not None and user_in.role != UserRole.USER.value:
            logger.warning(f"Intento de registro con rol '{user_in.role}': {user_in.email}")
            raise ForbiddenError("No puedes registrarte con un rol distinto de 'user'")

        payload = user_in.model_dump(exclude={"password_confirm"}, exclude_none=True)
        payload["role"] = UserRole.USER.value
        return user_handlers.create_one(db, payload)

    @staticmethod
    def login(db: Session, email: Optional[str], password: Optional[str]) -> User:
        if not email or not password:
            raise ValidationError("Debes indicar email y contraseña")

        user = db.execute(
            select(User).where(User.email == email.strip().lower(), User.active.is_(True))
        ).scalar_one_or_none()

        if not user or not user.correct_password(password):
            raise UnauthorizedError("Email o contraseña incorrectos")

        logger.info(f"Inicio de sesión: {user.email} (ID: {user.id})")
        return user

    @staticmethod
    def forgot_password(db: Session, email: str, reset_url_for, mailer: EmailSender) -> None:
        """
        Generar el token de restablecimiento y enviarlo por email

        Args:
            db: Sesión de base de datos
            email: Email del usuario
            reset_url_for: Callable token -> URL absoluta de restablecimiento
            mailer: Transporte de email

        Si el envío falla se limpian token y expiración antes de reportar el error.
        """
        user = db.execute(
            select(User).where(User.email == email.strip().lower(), User.active.is_(True))
        ).scalar_one_or_none()
        if not user:
            raise NotFoundError("No existe ningún usuario con ese email")

        reset_token = user.create_password_reset_token(settings.PASSWORD_RESET_EXPIRES_MINUTES)
        db.commit()

        message = (
            "¿Olvidaste tu contraseña? Envía una petición PATCH con tu nueva contraseña "
            f"y su confirmación a: {reset_url_for(reset_token)}\n"
            "Si no la olvidaste, ignora este email."
        )

        try:
            mailer.send(
                to=user.email,
                subject=(
                    "Tu token para restablecer la contraseña "
                    f"(válido por {settings.PASSWORD_RESET_EXPIRES_MINUTES} minutos)"
                ),
                body=message,
            )
        except Exception as e:
            logger.error(f"Error enviando email de restablecimiento a {user.email}: {str(e)}")
            user.clear_password_reset()
            db.commit()
            raise TransportError("Hubo un error enviando el email. Inténtalo más tarde")

        logger.info(f"Token de restablecimiento enviado a {user.email}")

    @staticmethod
    def reset_password(db: Session, token: str, password: str) -> User:
        user = db.execute(
            select(User).where(
                User.password_reset_token == hash_reset_token(token),
                User.password_reset_expires > utcnow(),
            )
        ).scalar_one_or_none()

        if not user:
            raise InvalidOrExpiredTokenError()

        user.set_password(password)
        user.clear_password_reset()
        db.commit()
        db.refresh(user)

        logger.info(f"Contraseña restablecida: {user.email} (ID: {user.id})")
        return user

    @staticmethod
    def update_password(db: Session, user: User, current_password: str, new_password: str) -> User:
        if not user.correct_password(current_password):
            raise UnauthorizedError("Tu contraseña actual es incorrecta")

        user.set_password(new_password)
        db.commit()
        db.refresh(user)

        logger.info(f"Contraseña actualizada: {user.email} (ID: {user.id})")
        return user
