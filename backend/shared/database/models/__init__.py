# shared/database/models/__init__.py
"""
Modelos de base de datos para tours, usuarios y reviews
"""
from .user import User, UserRole
from .tour import Tour, TourStartDate, tour_guides
from .review import Review

__all__ = [
    "User",
    "UserRole",
    "Tour",
    "TourStartDate",
    "tour_guides",
    "Review"
]
