# backend/api_gateway/middleware.py
"""
Middlewares HTTP: rate limiting, cabeceras de seguridad, límite de tamaño
del cuerpo y log de peticiones
"""
import asyncio
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class RateLimiter:
    """
    Rate limiter de ventana fija por cliente

    Cada cliente tiene (inicio de ventana, peticiones). Las ventanas
    vencidas se eliminan en cada acceso.
    """
    def __init__(self, max_requests: int = 100, window_seconds: int = 3600, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = asyncio.Lock()

    def _evict_expired(self, now: float) -> None:
        expired = [
            key for key, (started, _) in self._windows.items()
            if now - started >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]

    async def acquire(self, key: str) -> bool:
        """
        Registrar una petición del cliente
        Returns: True si se permite, False si superó el límite
        """
        async with self._lock:
            now = self._clock()
            self._evict_expired(now)

            started, count = self._windows.get(key, (now, 0))
            if count >= self.max_requests:
                logger.warning(f"Rate limit alcanzado para {key}: {count}/{self.max_requests}")
                return False

            self._windows[key] = (started, count + 1)
            return True

    async def retry_after(self, key: str) -> int:
        async with self._lock:
            window = self._windows.get(key)
            if window is None:
                return 0
            return max(0, int(window[0] + self.window_seconds - self._clock()))

    def reset(self) -> None:
        self._windows.clear()


def client_key(request: Request) -> str:
    return request.client.host if request.client else "anonymous"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Limita las peticiones por IP en las rutas bajo el prefijo indicado"""

    def __init__(self, app, limiter: RateLimiter, path_prefix: str = "/api"):
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        key = client_key(request)
        if not await self.limiter.acquire(key):
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "status": "fail",
                    "message": "Demasiadas peticiones desde esta IP. Inténtalo de nuevo en una hora",
                },
                headers={"Retry-After": str(await self.limiter.retry_after(key))},
            )
        return await call_next(request)


class BodySizeLimitMiddleware:
    """
    Rechaza (413) cuerpos mayores que max_body_size

    Si hay Content-Length se rechaza antes de leer; si no (chunked) se
    cuentan los bytes recibidos y se corta al superar el límite.
    """

    def __init__(self, app: ASGIApp, max_body_size: int):
        self.app = app
        self.max_body_size = max_body_size

    def _message(self) -> str:
        return f"El cuerpo de la petición supera {self.max_body_size} bytes"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length: Optional[str] = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_size:
            response = JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"status": "fail", "message": self._message()},
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    logger.warning(f"Cuerpo de {received}+ bytes rechazado en {scope.get('path')}")
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=self._message(),
                    )
            return message

        await self.app(scope, limited_receive, send)


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Cabeceras HTTP de seguridad en todas las respuestas"""

    def __init__(self, app, hsts: bool = False):
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        if self.hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log de método, ruta, estado y duración (solo en desarrollo)"""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} - {elapsed_ms:.1f}ms")
        return response
