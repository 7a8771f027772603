# backend/tienda/core/errors.py
"""
Taxonomía de errores compartida por el carrito, los pedidos y los pagos.

Cada fallo, local o remoto, se clasifica con un ErrorKind. Las excepciones
de este módulo sólo circulan dentro de los servicios: cada operación las
captura en su propio borde y las convierte en un OperationResult.
"""
import enum
from typing import List, Optional


class ErrorKind(str, enum.Enum):
    """Categorías de error reconocidas por el cliente."""
    LOCAL_VALIDATION = "local_validation"
    REMOTE_VALIDATION = "remote_validation"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    TRANSIENT_NETWORK = "transient_network"
    SERVER = "server"
    DECODE = "decode"
    UNKNOWN = "unknown"


class TiendaError(Exception):
    """Error base de la tienda."""
    kind: ErrorKind = ErrorKind.UNKNOWN
    status: int = 500

    def __init__(self, message: str, validation_errors: Optional[List[str]] = None):
        self.message = message
        self.validation_errors = validation_errors or []
        super().__init__(message)


class LocalValidationError(TiendaError):
    """Datos inválidos detectados antes de llegar a la red."""
    kind = ErrorKind.LOCAL_VALIDATION
    status = 400


class RemoteValidationError(TiendaError):
    """El backend rechazó los datos (HTTP 422)."""
    kind = ErrorKind.REMOTE_VALIDATION
    status = 422


class AuthError(TiendaError):
    """Sesión expirada, credenciales incorrectas o usuario deshabilitado (401/403)."""
    kind = ErrorKind.AUTH
    status = 401


class NotFoundError(TiendaError):
    kind = ErrorKind.NOT_FOUND
    status = 404


class TransientNetworkError(TiendaError):
    """Timeout o fallo de conexión. No se reintenta automáticamente."""
    kind = ErrorKind.TRANSIENT_NETWORK
    status = 0


class ServerError(TiendaError):
    kind = ErrorKind.SERVER
    status = 500


class ResponseDecodeError(TiendaError):
    """El payload de un endpoint no coincide con su esquema documentado."""
    kind = ErrorKind.DECODE
    status = 502


def kind_for_status(status: int) -> ErrorKind:
    """Clasifica un código HTTP de error."""
    if status == 0:
        return ErrorKind.TRANSIENT_NETWORK
    if status in (401, 403):
        return ErrorKind.AUTH
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 422:
        return ErrorKind.REMOTE_VALIDATION
    if status >= 500:
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


_ERROR_CLASSES = {
    ErrorKind.LOCAL_VALIDATION: LocalValidationError,
    ErrorKind.REMOTE_VALIDATION: RemoteValidationError,
    ErrorKind.AUTH: AuthError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.TRANSIENT_NETWORK: TransientNetworkError,
    ErrorKind.SERVER: ServerError,
    ErrorKind.DECODE: ResponseDecodeError,
}


def error_for(kind: Optional[ErrorKind], message: str, validation_errors: Optional[List[str]] = None,
              status: Optional[int] = None) -> TiendaError:
    """Construye la excepción que corresponde a un resultado fallido."""
    error_class = _ERROR_CLASSES.get(kind, TiendaError)
    error = error_class(message, validation_errors)
    if status is not None:
        error.status = status
    return error
