# backend/shared/schemas/tour.py
"""
Schemas para tours
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from .base import GeoPoint, PartialUpdate, RequestBase

Difficulty = Literal["easy", "medium", "difficult"]


def _check_discount(price: Optional[float], discount: Optional[float]) -> None:
    if price is not None and discount is not None and discount >= price:
        raise ValueError("El descuento debe ser menor que el precio")


class TourCreate(RequestBase):
    """Schema para crear un tour"""
    name: str = Field(..., min_length=10, max_length=40, description="Nombre único del tour")
    duration: int = Field(..., gt=0, description="Duración en días")
    max_group_size: int = Field(..., gt=0)
    difficulty: Difficulty
    ratings_average: float = Field(4.5, ge=1, le=5)
    ratings_quantity: int = Field(0, ge=0)
    price: float = Field(..., gt=0)
    price_discount: Optional[float] = Field(None, ge=0)
    summary: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    image_cover: str = Field(..., min_length=1, max_length=255)
    images: List[str] = Field(default_factory=list)
    start_dates: List[datetime] = Field(default_factory=list)
    secret_tour: bool = False
    start_location: Optional[GeoPoint] = None
    locations: List[GeoPoint] = Field(default_factory=list)
    guides: List[int] = Field(default_factory=list, description="IDs de usuarios guía")

    @model_validator(mode="after")
    def _validate_discount(self):
        _check_discount(self.price, self.price_discount)
        return self


class TourUpdate(PartialUpdate):
    """Schema para actualizar un tour (parcial)"""
    nullable_fields = ("price_discount", "description", "start_location")

    name: Optional[str] = Field(None, min_length=10, max_length=40)
    duration: Optional[int] = Field(None, gt=0)
    max_group_size: Optional[int] = Field(None, gt=0)
    difficulty: Optional[Difficulty] = None
    ratings_average: Optional[float] = Field(None, ge=1, le=5)
    ratings_quantity: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, gt=0)
    price_discount: Optional[float] = Field(None, ge=0)
    summary: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    image_cover: Optional[str] = Field(None, min_length=1, max_length=255)
    images: Optional[List[str]] = None
    start_dates: Optional[List[datetime]] = None
    secret_tour: Optional[bool] = None
    start_location: Optional[GeoPoint] = None
    locations: Optional[List[GeoPoint]] = None
    guides: Optional[List[int]] = None

    @model_validator(mode="after")
    def _validate_discount(self):
        _check_discount(self.price, self.price_discount)
        return self
