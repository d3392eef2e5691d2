# backend/services/users/__init__.py
"""
Módulo de servicios para gestión de usuarios
"""
from .service import UserService
from .router import router as users_router

__all__ = ["UserService", "users_router"]
