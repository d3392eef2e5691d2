# backend/api_gateway/errors.py
"""
Manejador centralizado de errores

Traduce AppError, errores de validación de FastAPI, HTTPException de
Starlette y excepciones no controladas al sobre JSON de la API.
"""
import traceback
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config.settings import Settings
from shared.utils.exceptions import AppError
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

GENERIC_ERROR_MESSAGE = "Algo salió muy mal"


def _status_label(status_code: int) -> str:
    return "fail" if 400 <= status_code < 500 else "error"


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return f"Datos de entrada inválidos. {'. '.join(messages)}"


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Registrar los manejadores en la aplicación"""
    development = settings.ENVIRONMENT == "development"

    def render(status_code: int, message: str, exc: Exception, extra: Dict[str, Any] = None) -> JSONResponse:
        content: Dict[str, Any] = {
            "status": _status_label(status_code),
            "message": message,
        }
        if extra:
            content.update(extra)
        if development:
            content["error"] = {"type": type(exc).__name__, "detail": str(exc)}
            content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        extra = {"details": exc.details} if exc.details else None
        return render(exc.status_code, exc.message, exc, extra)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return render(status.HTTP_400_BAD_REQUEST, _format_validation_errors(exc), exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = f"No se encuentra {request.url.path} en este servidor"
        else:
            message = str(exc.detail)
        response = render(exc.status_code, message, exc)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Error no controlado en {request.method} {request.url.path}")
        message = str(exc) if development else GENERIC_ERROR_MESSAGE
        return render(status.HTTP_500_INTERNAL_SERVER_ERROR, message, exc)
