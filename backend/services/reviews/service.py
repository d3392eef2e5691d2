# backend/services/reviews/service.py
"""
Servicio para reviews de tours
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shared.config.settings import get_settings
from shared.database.models import Review, Tour, User, UserRole
from shared.schemas.review import ReviewCreate, ReviewUpdate
from shared.utils.api_features import APIFeatures
from shared.utils.exceptions import ForbiddenError, NotFoundError, ValidationError
from shared.utils.logger import setup_logger
from services.handler_factory import HandlerFactory, SQLAlchemyRepository

logger = setup_logger(__name__)
settings = get_settings()

DEFAULT_RATINGS_AVERAGE = 4.5


def calc_average_ratings(db: Session, tour_id: int) -> None:
    """Recalcular ratings_average / ratings_quantity del tour a partir de sus reviews"""
    tour = db.get(Tour, tour_id)
    if tour is None:
        return

    quantity, average = db.execute(
        select(func.count(Review.id), func.avg(Review.rating)).where(Review.tour_id == tour_id)
    ).one()

    tour.ratings_quantity = quantity
    tour.ratings_average = float(average) if quantity else DEFAULT_RATINGS_AVERAGE
    logger.debug(f"Ratings del tour {tour_id}: {tour.ratings_average} ({quantity} reviews)")


class ReviewRepository(SQLAlchemyRepository[Review]):

    def assign(self, db: Session, obj: Review, payload: Dict[str, Any]) -> None:
        tour_id = payload.get("tour_id")
        if tour_id is not None and db.get(Tour, tour_id) is None:
            raise ValidationError(f"No existe ningún tour con ID {tour_id}")
        user_id = payload.get("user_id")
        if user_id is not None and db.get(User, user_id) is None:
            raise ValidationError(f"No existe ningún usuario con ID {user_id}")
        super().assign(db, obj, payload)

    def after_change(self, db: Session, obj: Review) -> None:
        calc_average_ratings(db, obj.tour_id)


review_repository = ReviewRepository(Review)
review_handlers = HandlerFactory(review_repository, "Review")


class ReviewService:

    @staticmethod
    def get_all(
        db: Session,
        query_params: Mapping,
        tour_id: Optional[int] = None
    ) -> Tuple[List[Review], APIFeatures]:
        """Reviews de todos los tours, o solo del tour de la ruta anidada"""
        query = select(Review)
        if tour_id is not None:
            query = query.where(Review.tour_id == tour_id)

        features = (
            APIFeatures(Review, query, query_params, max_limit=settings.QUERY_MAX_LIMIT)
            .filter()
            .sort()
            .limit_fields()
            .paginate()
        )
        return features.execute(db), features

    @staticmethod
    def get_or_404(db: Session, review_id: int) -> Review:
        review = db.get(Review, review_id)
        if not review:
            raise NotFoundError(f"Review con ID {review_id} no encontrada")
        return review

    @staticmethod
    def set_tour_and_user_ids(
        data: ReviewCreate,
        tour_id: Optional[int],
        current_user: User
    ) -> Dict[str, Any]:
        """
        Completar tour_id (ruta anidada) y user_id (usuario autenticado) si faltan

        Un usuario con rol 'user' solo puede publicar reviews a su nombre.
        """
        payload = data.model_dump()
        if payload.get("tour_id") is None:
            payload["tour_id"] = tour_id
        if payload.get("user_id") is None:
            payload["user_id"] = current_user.id

        if current_user.role == UserRole.USER.value and payload["user_id"] != current_user.id:
            logger.warning(
                f"Usuario {current_user.id} intentó publicar una review como el usuario {payload['user_id']}"
            )
            raise ForbiddenError("Permiso denegado. Solo puedes publicar reviews a tu nombre")

        if payload["tour_id"] is None:
            raise ValidationError("Una review debe pertenecer a un tour")
        return payload

    @staticmethod
    def check_if_author_match(db: Session, review_id: int, current_user: User) -> Review:
        """Un usuario con rol 'user' solo puede modificar sus propias reviews"""
        review = ReviewService.get_or_404(db, review_id)

        if current_user.role == UserRole.USER.value and review.user_id != current_user.id:
            logger.warning(
                f"Usuario {current_user.id} intentó modificar la review {review_id} de otro autor"
            )
            raise ForbiddenError("Permiso denegado. No eres el autor de esta review")
        return review

    @staticmethod
    def create(db: Session, payload: Dict[str, Any]) -> Review:
        return review_handlers.create_one(db, payload)

    @staticmethod
    def update(db: Session, review_id: int, data: ReviewUpdate) -> Review:
        return review_handlers.update_one(db, review_id, data.model_dump(exclude_unset=True))

    @staticmethod
    def delete(db: Session, review_id: int) -> None:
        review_handlers.delete_one(db, review_id)
