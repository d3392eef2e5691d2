# backend/services/reviews/router.py
"""
Endpoints REST para reviews (también anidados bajo /tours/{tour_id}/reviews)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Request, Response, status
from sqlalchemy.orm import Session

from shared.database.base import get_db
from shared.database.models import User, UserRole
from shared.schemas.review import ReviewCreate, ReviewUpdate
from shared.utils.api_features import parse_query_params
from services.auth.dependencies import get_current_user, restrict_to
from .service import ReviewService

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    dependencies=[Depends(get_current_user)]
)

tour_reviews_router = APIRouter(
    prefix="/tours/{tour_id}/reviews",
    tags=["Reviews"],
    dependencies=[Depends(get_current_user)]
)


def _list_reviews(request: Request, db: Session, tour_id: Optional[int] = None):
    reviews, features = ReviewService.get_all(
        db,
        parse_query_params(request.query_params.multi_items()),
        tour_id=tour_id
    )
    return {
        "status": "success",
        "results": len(reviews),
        "data": {"reviews": features.serialize(reviews)}
    }


def _create_review(
    db: Session,
    data: ReviewCreate,
    current_user: User,
    tour_id: Optional[int] = None
):
    payload = ReviewService.set_tour_and_user_ids(data, tour_id, current_user)
    review = ReviewService.create(db, payload)
    return {
        "status": "success",
        "data": {"data": review.to_dict()}
    }


@router.get("", summary="Listar reviews")
def get_all_reviews(request: Request, db: Session = Depends(get_db)):
    return _list_reviews(request, db)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Crear una review")
def create_review(
    data: ReviewCreate,
    current_user: User = Depends(restrict_to(UserRole.USER)),
    db: Session = Depends(get_db)
):
    return _create_review(db, data, current_user)


@router.get("/{review_id}", summary="Obtener una review")
def get_review(review_id: int = Path(..., gt=0), db: Session = Depends(get_db)):
    review = ReviewService.get_or_404(db, review_id)
    return {
        "status": "success",
        "data": {"review": review.to_dict()}
    }


@router.patch("/{review_id}", summary="Actualizar una review")
def update_review(
    data: ReviewUpdate,
    review_id: int = Path(..., gt=0),
    current_user: User = Depends(restrict_to(UserRole.USER, UserRole.ADMIN)),
    db: Session = Depends(get_db)
):
    ReviewService.check_if_author_match(db, review_id, current_user)
    review = ReviewService.update(db, review_id, data)
    return {
        "status": "success",
        "data": {"data": review.to_dict()}
    }


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Eliminar una review")
def delete_review(
    review_id: int = Path(..., gt=0),
    current_user: User = Depends(restrict_to(UserRole.USER, UserRole.ADMIN)),
    db: Session = Depends(get_db)
):
    ReviewService.check_if_author_match(db, review_id, current_user)
    ReviewService.delete(db, review_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@tour_reviews_router.get("", summary="Listar las reviews de un tour")
def get_tour_reviews(
    request: Request,
    tour_id: int = Path(..., gt=0),
    db: Session = Depends(get_db)
):
    return _list_reviews(request, db, tour_id=tour_id)


@tour_reviews_router.post("", status_code=status.HTTP_201_CREATED, summary="Crear una review para un tour")
def create_tour_review(
    data: ReviewCreate,
    tour_id: int = Path(..., gt=0),
    current_user: User = Depends(restrict_to(UserRole.USER)),
    db: Session = Depends(get_db)
):
    return _create_review(db, data, current_user, tour_id=tour_id)
