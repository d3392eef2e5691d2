from pydantic_settings import BaseSettings
from typing import List, Optional
from functools import lru_cache

class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # Application
    APP_NAME: str = "Natours API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"

    # Database - Se carga desde .env (requerido en runtime)
    DATABASE_URL: str = ""

    # Security - Se carga desde .env (requerido en runtime)
    SECRET_KEY: str = "ContraseñaSuperSecretaPeroAsiBienSecreta"
    ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN_DAYS: int = 90
    JWT_COOKIE_EXPIRES_IN_DAYS: int = 90
    PASSWORD_RESET_EXPIRES_MINUTES: int = 10
    BCRYPT_ROUNDS: int = 12

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000,http://localhost:8000"

    # Protección de la API
    RATE_LIMIT_MAX: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 60 * 60
    MAX_BODY_SIZE: int = 10 * 1024
    QUERY_MAX_LIMIT: int = 1000

    # Email (SMTP)
    EMAIL_HOST: str = "localhost"
    EMAIL_PORT: int = 25
    EMAIL_USERNAME: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "Natours <hello@natours.io>"

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    def __init__(self, **kwargs):
        """Inicializa y valida configuración"""
        super().__init__(**kwargs)

        # Validar que las variables críticas NO estén vacías
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL must be set in .env file")
        if not self.SECRET_KEY:
            raise ValueError("SECRET_KEY must be set in .env file")
        if len(self.SECRET_KEY) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        if self.RATE_LIMIT_MAX < 1:
            raise ValueError("RATE_LIMIT_MAX must be a positive integer")

    @property
    def allowed_origins_list(self) -> List[str]:
        """Convierte ALLOWED_ORIGINS de string a lista"""
        if isinstance(self.ALLOWED_ORIGINS, str):
            return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(',')]
        return self.ALLOWED_ORIGINS

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

@lru_cache()
def get_settings() -> Settings:
    """Singleton de configuración"""
    return Settings()
