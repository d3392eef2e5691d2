# backend/services/auth/__init__.py
"""
Autenticación (JWT) y autorización por roles
"""
from .service import AuthService
from .dependencies import get_current_user, restrict_to
from .router import router as auth_router

__all__ = ["AuthService", "get_current_user", "restrict_to", "auth_router"]
