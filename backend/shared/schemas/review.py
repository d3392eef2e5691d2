# backend/shared/schemas/review.py
"""
Schemas para reviews
"""
from typing import Optional

from pydantic import Field

from .base import PartialUpdate, RequestBase


class ReviewCreate(RequestBase):
    """tour_id / user_id se completan desde la ruta y el usuario autenticado"""
    review: str = Field(..., min_length=1, max_length=2000)
    rating: int = Field(..., ge=1, le=5)
    tour_id: Optional[int] = Field(None, gt=0)
    user_id: Optional[int] = Field(None, gt=0)


class ReviewUpdate(PartialUpdate):
    review: Optional[str] = Field(None, min_length=1, max_length=2000)
    rating: Optional[int] = Field(None, ge=1, le=5)
