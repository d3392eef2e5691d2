# shared/utils/exceptions.py
"""
Jerarquía de errores operacionales de la API

Todos los errores de dominio heredan de AppError y se traducen a una
respuesta JSON en el manejador centralizado (api_gateway/errors.py).
"""
from typing import Any, Dict, Optional

from fastapi import status


class AppError(Exception):
    """Error operacional (esperado) con código HTTP asociado"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "APP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        self.is_operational = True

    @property
    def status(self) -> str:
        """'fail' para errores del cliente, 'error' para errores del servidor"""
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": self.status,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(AppError):
    """Violación de esquema o de restricciones de datos"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class InvalidOrExpiredTokenError(ValidationError):
    """Token de restablecimiento inexistente, ya usado o vencido"""
    code = "INVALID_OR_EXPIRED_TOKEN"

    def __init__(self, message: str = "El token es inválido o ha expirado"):
        super().__init__(message)


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class TooManyRequestsError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "TOO_MANY_REQUESTS"


class TransportError(AppError):
    """Fallo de un colaborador externo (email, almacenamiento)"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "TRANSPORT_ERROR"
