from typing import Optional, Union
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from shared.database.base import get_db
from shared.database.models import User, UserRole
from shared.utils.exceptions import ForbiddenError, UnauthorizedError
from shared.utils.security import COOKIE_NAME, decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Proteger una ruta: token Bearer (o cookie 'jwt') válido, usuario existente
    y activo, y contraseña sin cambios desde la emisión del token
    """
    if not token:
        token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise UnauthorizedError("No has iniciado sesión. Inicia sesión para obtener acceso")

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise UnauthorizedError("Tu token ha expirado. Inicia sesión de nuevo")
    except JWTError:
        raise UnauthorizedError("Token inválido. Inicia sesión de nuevo")

    try:
        user_id = int(payload.get("sub"))
        issued_at = int(payload.get("iat"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Token inválido. Inicia sesión de nuevo")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("El usuario de este token ya no existe")
    if not user.active:
        raise UnauthorizedError("Este usuario ya no está activo")
    if user.changed_password_after(issued_at):
        raise UnauthorizedError("La contraseña cambió recientemente. Inicia sesión de nuevo")

    return user


def restrict_to(*roles: Union[UserRole, str]):
    """Dependencia que exige uno de los roles indicados (no mira la propiedad del recurso)"""
    allowed = {role.value if isinstance(role, UserRole) else role for role in roles}

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError("No tienes permiso para realizar esta acción")
        return current_user

    return role_checker
