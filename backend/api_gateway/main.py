# backend/api_gateway/main.py
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from shared.config.settings import Settings, get_settings
from shared.utils.logger import setup_logger
from api_gateway.errors import register_exception_handlers
from api_gateway.middleware import (
    BodySizeLimitMiddleware,
    RateLimiter,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from api_gateway.routes import health

from services.auth import auth_router
from services.users import users_router
from services.reviews import reviews_router, tour_reviews_router
from services.tours import tours_router

from shared.database.base import init_db

logger = setup_logger(__name__)

API_PREFIX = "/api/v1"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Construir la aplicación con middlewares, manejadores de error y routers"""
    settings = settings or get_settings()

    # Crea la extensión PostGIS y las tablas si no existen
    init_db()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None
    )

    # Middlewares (el último añadido es el más externo)
    if settings.ENVIRONMENT == "development":
        app.add_middleware(RequestLoggingMiddleware)

    app.state.rate_limiter = RateLimiter(
        max_requests=settings.RATE_LIMIT_MAX,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS
    )
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter, path_prefix="/api")
    app.add_middleware(BodySizeLimitMiddleware, max_body_size=settings.MAX_BODY_SIZE)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    # Routers
    app.include_router(
        health.router,
        prefix="/api/health",
        tags=["Health Check"]
    )

    # Las reviews anidadas van antes que /tours/{identifier}
    app.include_router(tour_reviews_router, prefix=API_PREFIX)
    app.include_router(tours_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(reviews_router, prefix=API_PREFIX)

    @app.on_event("startup")
    async def startup_event():
        """Evento de inicio de la aplicación"""
        logger.info(f"🚀 Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"📝 Modo: {settings.ENVIRONMENT}")
        logger.info(f"🔍 Debug: {settings.DEBUG}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Evento de cierre de la aplicación"""
        logger.info(f"👋 Cerrando {settings.APP_NAME}")

    @app.get("/")
    async def root():
        """Endpoint raíz"""
        return {
            "message": f"Bienvenido a {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "status": "running",
            "environment": settings.ENVIRONMENT,
            "docs": "/docs" if settings.DEBUG else "disabled"
        }

    return app


app = create_app()
