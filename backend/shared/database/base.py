# shared/database/base.py
"""
Engine, sesiones y Base declarativa de SQLAlchemy
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config.settings import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict:
    """Opciones del engine según el dialecto"""
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        # Base de datos en memoria: una sola conexión compartida
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    **_engine_options(settings.DATABASE_URL)
)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False
)

Base = declarative_base()


def get_db():
    """Generador de sesión de base de datos (dependencia de FastAPI)"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime:
    """Fecha actual en UTC (timezone-aware)"""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normaliza fechas leídas de la BD (SQLite las devuelve naive)"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def init_db(bind=None) -> None:
    """Crear la extensión PostGIS (solo PostgreSQL) y las tablas que falten"""
    from . import models  # noqa: F401  (registra las tablas en Base.metadata)

    bind = bind or engine
    if bind.dialect.name == "postgresql":
        with bind.begin() as connection:
            connection.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))
    Base.metadata.create_all(bind=bind)
