# backend/tienda/services/base.py
"""
Estado común de los servicios que hablan con la API remota.

Cada operación captura los TiendaError en su propio borde, deja el mensaje
y los errores de validación en el servicio y devuelve un OperationResult.
"""
import logging
from typing import Any, List, Optional

from tienda.core.errors import ErrorKind, TiendaError
from tienda.schemas.response_schema import NormalizedResult, OperationResult

logger = logging.getLogger(__name__)


class RemoteStateMixin:
    """Mensaje, éxito y errores de validación de la última operación."""

    def _init_state(self) -> None:
        self.loading = False
        self.success = False
        self.message = ""
        self.error: Optional[str] = None
        self.validation_errors: List[str] = []

    def reset_state(self) -> None:
        self.loading = True
        self.error = None
        self.success = False
        self.message = ""
        self.validation_errors = []

    def clear_errors(self) -> None:
        self.error = None
        self.validation_errors = []

    def _succeed(self, result: NormalizedResult, data: Any = None) -> OperationResult:
        self.success = True
        self.message = result.message
        self.validation_errors = list(result.validation_errors)
        return OperationResult(success=True, message=result.message, data=data, status=result.status)

    def _fail(self, error: TiendaError) -> OperationResult:
        self.success = False
        self.error = error.message
        self.message = error.message or "Ha ocurrido un error."
        self.validation_errors = list(error.validation_errors)
        if error.kind == ErrorKind.LOCAL_VALIDATION:
            logger.warning(f"{type(self).__name__}: validación local fallida: {error.message}")
        return OperationResult(
            success=False,
            message=self.message,
            status=error.status,
            validation_errors=self.validation_errors,
            kind=error.kind,
        )
