# shared/utils/security.py
"""
Primitivas de seguridad: hashing de contraseñas, JWT y tokens de restablecimiento
"""
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from jose import jwt
from passlib.context import CryptContext

from shared.config.settings import get_settings
from shared.database.base import utcnow

settings = get_settings()

# Cookie que replica el token de sesión
COOKIE_NAME = "jwt"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(subject: Any, now: Optional[datetime] = None) -> str:
    """
    Firmar un JWT para el usuario indicado

    Args:
        subject: ID del usuario (se guarda como string en 'sub')
        now: Momento de emisión (por defecto, ahora)

    Returns:
        str: Token firmado con SECRET_KEY / ALGORITHM
    """
    issued_at = now or utcnow()
    to_encode = {
        "sub": str(subject),
        "iat": int(issued_at.timestamp()),
        "exp": issued_at + timedelta(days=settings.JWT_EXPIRES_IN_DAYS),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verifica firma y expiración. Lanza jose.JWTError si el token no es válido"""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def generate_reset_token() -> Tuple[str, str]:
    """Devuelve (token en claro, hash sha256 a persistir)"""
    token = secrets.token_hex(32)
    return token, hash_reset_token(token)
