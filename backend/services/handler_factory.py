# backend/services/handler_factory.py
"""
Operaciones CRUD genéricas parametrizadas por tipo de recurso

Cada recurso expone un repositorio con la capacidad mínima
(insert / find_and_update / find_and_delete) y el HandlerFactory
aplica sobre él las mismas reglas de errores y logging.
"""
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

ModelT = TypeVar("ModelT")


class SQLAlchemyRepository(Generic[ModelT]):
    """Acceso a una tabla con los hooks que cada recurso puede sobrescribir"""

    def __init__(self, model: Type[ModelT]):
        self.model = model

    def get(self, db: Session, obj_id: int) -> Optional[ModelT]:
        return db.get(self.model, obj_id)

    def assign(self, db: Session, obj: ModelT, payload: Dict[str, Any]) -> None:
        """Copiar el payload al objeto (los @validates del modelo se ejecutan aquí)"""
        for field, value in payload.items():
            setattr(obj, field, value)

    def after_change(self, db: Session, obj: ModelT) -> None:
        """Hook ejecutado tras crear, actualizar o borrar"""

    def insert(self, db: Session, payload: Dict[str, Any]) -> ModelT:
        obj = self.model()
        self.assign(db, obj, payload)
        db.add(obj)
        db.flush()
        self.after_change(db, obj)
        return obj

    def find_and_update(self, db: Session, obj_id: int, payload: Dict[str, Any]) -> Optional[ModelT]:
        obj = self.get(db, obj_id)
        if obj is None:
            return None
        self.assign(db, obj, payload)
        db.flush()
        self.after_change(db, obj)
        return obj

    def find_and_delete(self, db: Session, obj_id: int) -> Optional[ModelT]:
        obj = self.get(db, obj_id)
        if obj is None:
            return None
        db.delete(obj)
        db.flush()
        self.after_change(db, obj)
        return obj


class HandlerFactory(Generic[ModelT]):
    """
    create_one / update_one / delete_one para cualquier recurso

    - NotFoundError si el ID no existe (update/delete)
    - ValidationError si se viola una restricción (validadores o claves únicas)
    - Cualquier otro error de almacenamiento se registra y se propaga (500)
    - Borrar no elimina documentos dependientes (sin cascada)
    """

    def __init__(self, repository: SQLAlchemyRepository[ModelT], resource_name: str):
        self.repository = repository
        self.resource_name = resource_name

    def _commit(self, db: Session, obj: Optional[ModelT] = None) -> None:
        db.commit()
        if obj is not None:
            db.refresh(obj)

    def _run(self, db: Session, action: str, operation):
        try:
            return operation()
        except (ValidationError, NotFoundError):
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Restricción violada en {self.resource_name}: {e.orig}")
            raise ValidationError("Valor duplicado o referencia inválida. Usa otro valor")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error al {action} {self.resource_name}: {str(e)}")
            raise

    def create_one(self, db: Session, payload: Dict[str, Any]) -> ModelT:
        def operation():
            obj = self.repository.insert(db, payload)
            self._commit(db, obj)
            return obj

        obj = self._run(db, "crear", operation)
        logger.info(f"{self.resource_name} creado (ID: {obj.id})")
        return obj

    def update_one(self, db: Session, obj_id: int, payload: Dict[str, Any]) -> ModelT:
        def operation():
            obj = self.repository.find_and_update(db, obj_id, payload)
            if obj is None:
                raise NotFoundError(f"No se encontró ningún documento con ID {obj_id}")
            self._commit(db, obj)
            return obj

        obj = self._run(db, "actualizar", operation)
        logger.info(f"{self.resource_name} actualizado (ID: {obj_id})")
        return obj

    def delete_one(self, db: Session, obj_id: int) -> None:
        def operation():
            obj = self.repository.find_and_delete(db, obj_id)
            if obj is None:
                raise NotFoundError(f"No se encontró ningún documento con ID {obj_id}")
            self._commit(db)

        self._run(db, "eliminar", operation)
        logger.info(f"{self.resource_name} eliminado (ID: {obj_id})")
