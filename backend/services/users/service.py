# backend/services/users/service.py
"""
Servicio para gestión de usuarios
"""
from typing import Any, Dict, List, Mapping, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.settings import get_settings
from shared.database.models import User
from shared.schemas.user import UpdateMeRequest, UserCreate, UserUpdate
from shared.utils.api_features import APIFeatures
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.logger import setup_logger
from services.handler_factory import HandlerFactory, SQLAlchemyRepository

logger = setup_logger(__name__)
settings = get_settings()

# Campos que un usuario puede cambiar de sí mismo
SELF_UPDATE_FIELDS = ("name", "email", "photo")


class UserRepository(SQLAlchemyRepository[User]):
    """La contraseña nunca se guarda en claro"""

    def assign(self, db: Session, obj: User, payload: Dict[str, Any]) -> None:
        payload = dict(payload)
        password = payload.pop("password", None)
        super().assign(db, obj, payload)
        if password is not None:
            # En el alta no se marca password_changed_at
            obj.set_password(password, stamp_change=obj.id is not None)


user_repository = UserRepository(User)
user_handlers = HandlerFactory(user_repository, "Usuario")


class UserService:
    """Operaciones de usuarios (lecturas propias + HandlerFactory)"""

    @staticmethod
    def get_all(db: Session, query_params: Mapping) -> Tuple[List[User], APIFeatures]:
        """Usuarios activos con filtros, orden, proyección y paginación"""
        features = (
            APIFeatures(
                User,
                select(User).where(User.active.is_(True)),
                query_params,
                max_limit=settings.QUERY_MAX_LIMIT
            )
            .filter()
            .sort()
            .limit_fields()
            .paginate()
        )
        return features.execute(db), features

    @staticmethod
    def get_or_404(db: Session, user_id: int) -> User:
        user = db.get(User, user_id)
        if not user or not user.active:
            raise NotFoundError(f"Usuario con ID {user_id} no encontrado")
        return user

    @staticmethod
    def create(db: Session, data: UserCreate) -> User:
        return user_handlers.create_one(db, data.model_dump(exclude={"password_confirm"}, exclude_none=True))

    @staticmethod
    def update(db: Session, user_id: int, data: UserUpdate) -> User:
        return user_handlers.update_one(db, user_id, data.model_dump(exclude_unset=True))

    @staticmethod
    def delete(db: Session, user_id: int) -> None:
        user_handlers.delete_one(db, user_id)

    @staticmethod
    def update_me(db: Session, user: User, data: UpdateMeRequest) -> User:
        """
        Actualizar los datos propios del usuario autenticado

        Las contraseñas se cambian únicamente en /update-password
        """
        if data.password is not None or data.password_confirm is not None:
            raise ValidationError(
                "Esta ruta no sirve para cambiar la contraseña. Usa /update-password"
            )

        payload = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if field in SELF_UPDATE_FIELDS and value is not None
        }
        return user_handlers.update_one(db, user.id, payload)

    @staticmethod
    def delete_me(db: Session, user: User) -> None:
        """Borrado lógico: la cuenta queda inactiva"""
        user.active = False
        db.commit()
        logger.info(f"Usuario desactivado: {user.email} (ID: {user.id})")
