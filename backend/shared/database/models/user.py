# shared/database/models/user.py
"""
Modelo de usuarios y roles
"""
import enum
from datetime import timedelta

from sqlalchemy import Column, Integer, String, DateTime, Boolean, func
from sqlalchemy.orm import relationship, validates

from shared.database.base import Base, utcnow, as_utc
from shared.utils.security import (
    get_password_hash,
    verify_password,
    generate_reset_token,
)


class UserRole(str, enum.Enum):
    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


class User(Base):
    """Tabla de usuarios"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    photo = Column(String(255), nullable=False, default="default.jpg")
    role = Column(String(20), nullable=False, default=UserRole.USER.value)

    # Nunca se serializa
    password = Column(String(255), nullable=False)
    password_changed_at = Column(DateTime(timezone=True))
    password_reset_token = Column(String(64), index=True)
    password_reset_expires = Column(DateTime(timezone=True))

    # Borrado lógico
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    version_id = Column(Integer, nullable=False)

    guided_tours = relationship(
        "Tour",
        secondary="tour_guides",
        back_populates="guides",
        lazy="select"
    )

    __mapper_args__ = {"version_id_col": version_id}

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower() if value else value

    def set_password(self, plain_password: str, stamp_change: bool = True) -> None:
        """
        Guardar el hash de la contraseña

        password_changed_at se marca 1 segundo en el pasado para que el
        token emitido justo después siga siendo válido.
        """
        self.password = get_password_hash(plain_password)
        if stamp_change:
            self.password_changed_at = utcnow() - timedelta(seconds=1)

    def correct_password(self, candidate: str) -> bool:
        return verify_password(candidate, self.password)

    def changed_password_after(self, jwt_issued_at: int) -> bool:
        """True si la contraseña cambió después de emitir el token"""
        changed_at = as_utc(self.password_changed_at)
        if changed_at is None:
            return False
        return jwt_issued_at < int(changed_at.timestamp())

    def create_password_reset_token(self, expires_minutes: int) -> str:
        """Genera el token de un solo uso; devuelve el valor en claro"""
        token, hashed = generate_reset_token()
        self.password_reset_token = hashed
        self.password_reset_expires = utcnow() + timedelta(minutes=expires_minutes)
        return token

    def clear_password_reset(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None

    @property
    def is_privileged(self) -> bool:
        return self.role != UserRole.USER.value

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    def to_public_dict(self) -> dict:
        """Vista reducida usada al expandir guías"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "photo": self.photo,
            "role": self.role,
        }

    def to_dict(self) -> dict:
        return {
            **self.to_public_dict(),
            "active": self.active,
            "password_changed_at": (
                self.password_changed_at.isoformat() if self.password_changed_at else None
            ),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "version_id": self.version_id,
        }

