# backend/services/reviews/__init__.py
"""
Módulo de servicios para reviews
"""
from .service import ReviewService
from .router import router as reviews_router, tour_reviews_router

__all__ = ["ReviewService", "reviews_router", "tour_reviews_router"]
