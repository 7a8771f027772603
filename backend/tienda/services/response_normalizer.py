# backend/tienda/services/response_normalizer.py
"""
Normalizador de respuestas remotas.

Convierte cualquier resultado de una llamada al backend (respuesta HTTP con
éxito o con error, fallo de transporte, sobre ya formado o basura) en un
NormalizedResult. Ningún componente inspecciona excepciones de transporte:
todos trabajan sobre esta forma canónica.

También filtra los mensajes que contienen vocabulario del motor de base de
datos para no exponer detalles internos en la interfaz.
"""
import logging
from typing import Any, Dict, List, Union

import httpx

from tienda.core.errors import ErrorKind, kind_for_status
from tienda.schemas.response_schema import NormalizedResult

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Su sesión ha expirado. Por favor, inicie sesión nuevamente."
BAD_CREDENTIALS_MESSAGE = "Credenciales incorrectas. Por favor, inténtelo nuevamente."
VALIDATION_MESSAGE = "Error de validación. Por favor, revise los campos."
TIMEOUT_MESSAGE = "La solicitud ha tardado demasiado tiempo. Intente nuevamente."
CONNECTION_MESSAGE = "Error de conexión. Verifique su red."
UNEXPECTED_MESSAGE = "Respuesta inesperada del servidor."

STATUS_MESSAGES = {
    403: "Usuario deshabilitado o no registrado.",
    404: "Recurso no encontrado.",
    422: VALIDATION_MESSAGE,
    500: "Error interno del servidor. Intente más tarde.",
}


def filter_database_error(message: Any) -> str:
    """
    Reescribe los mensajes con vocabulario del motor de base de datos a una
    frase corta del dominio.
    """
    if not message or not isinstance(message, str):
        return "Ha ocurrido un error inesperado"

    msg = message.lower()

    if "sqlstate" in msg or "not null violation" in msg or "connection: pgsql" in msg:
        if "reference" in msg and "not null" in msg:
            return "La referencia de dirección es requerida"
        if "not null violation" in msg:
            return "Faltan campos requeridos en el formulario"
        if "duplicate key" in msg or "unique constraint" in msg:
            return "Ya existe un registro con esta información"
        if "foreign key constraint" in msg:
            return "Error de integridad de datos"
        return "Error al procesar la información. Por favor intenta nuevamente"

    # Errores de validación largos y técnicos
    if len(message) > 200 and ("error:" in msg or "detail:" in msg):
        return "Error de validación. Por favor revisa los datos ingresados"

    return message


def _failure(message: str, status: int = 500, details: Any = None,
             validation_errors: List[str] = None, kind: ErrorKind = ErrorKind.SERVER) -> NormalizedResult:
    return NormalizedResult(
        success=False,
        message=filter_database_error(message),
        data=None,
        status=status,
        details=details,
        validation_errors=[filter_database_error(e) for e in validation_errors or []],
        kind=kind,
    )


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _extract_validation_errors(body: Dict[str, Any]) -> List[str]:
    """Extrae los mensajes por campo de un cuerpo 422."""
    errors = body.get("errors")
    if isinstance(errors, dict):
        messages = []
        for field, field_messages in errors.items():
            if field_messages is None:
                field_messages = []
            elif not isinstance(field_messages, list):
                field_messages = [field_messages]
            for msg in field_messages:
                messages.append(f"{field}: {msg}")
        return messages
    if isinstance(errors, list):
        return [str(e) for e in errors]
    details = body.get("details")
    if isinstance(details, list):
        return [str(d) for d in details]
    return []


def _error_message(status: int, reason: str, is_login: bool) -> str:
    if status == 401:
        return BAD_CREDENTIALS_MESSAGE if is_login else SESSION_EXPIRED_MESSAGE
    if status in STATUS_MESSAGES:
        return STATUS_MESSAGES[status]
    return f"Error {status}: {reason}"


def _normalize_error_response(response: httpx.Response, is_login: bool) -> NormalizedResult:
    body = _json_body(response)
    body = body if isinstance(body, dict) else {}
    status = response.status_code

    validation_errors: List[str] = []
    if status == 422:
        validation_errors = _extract_validation_errors(body)
    elif isinstance(body.get("errors"), list):
        validation_errors = [str(e) for e in body["errors"]]

    return _failure(
        _error_message(status, response.reason_phrase, is_login),
        status=status,
        details=body.get("details"),
        validation_errors=validation_errors,
        kind=kind_for_status(status),
    )


def _normalize_envelope(envelope: Dict[str, Any], http_status: int = 200) -> NormalizedResult:
    status = envelope.get("status")
    if not isinstance(status, int):
        status = http_status
    success = envelope.get("success")
    if success is None:
        success = 200 <= status < 300

    validation_errors = envelope.get("validationErrors") or envelope.get("errors") or []
    if isinstance(validation_errors, dict):
        validation_errors = _extract_validation_errors({"errors": validation_errors})
    elif not isinstance(validation_errors, list):
        validation_errors = []

    message = envelope.get("message")
    return NormalizedResult(
        success=bool(success),
        message=filter_database_error(message) if message else "",
        data=envelope.get("data"),
        status=status,
        details=envelope.get("details"),
        validation_errors=[filter_database_error(e) for e in validation_errors],
        kind=None if success else kind_for_status(status),
    )


def normalize(outcome: Any, *, is_login: bool = False, binary: bool = False) -> Union[NormalizedResult, httpx.Response]:
    """
    Convierte el resultado de una llamada remota en un NormalizedResult.

    Args:
        outcome: httpx.Response, excepción de transporte de httpx, un sobre
            {success, message, data, ...} ya formado, o cualquier otro valor.
        is_login: la llamada original era un intento de login (cambia el mensaje del 401).
        binary: la llamada descarga un archivo; si tuvo éxito se devuelve la
            respuesta cruda sin normalizar.

    Nunca lanza excepciones.
    """
    try:
        if isinstance(outcome, httpx.TimeoutException):
            return _failure(TIMEOUT_MESSAGE, status=0, kind=ErrorKind.TRANSIENT_NETWORK,
                            details={"exception": type(outcome).__name__, "error_message": str(outcome)})

        if isinstance(outcome, httpx.HTTPError):
            return _failure(CONNECTION_MESSAGE, status=0, kind=ErrorKind.TRANSIENT_NETWORK,
                            details={"exception": type(outcome).__name__, "error_message": str(outcome)})

        if isinstance(outcome, httpx.Response):
            if outcome.is_success:
                if binary:
                    return outcome
                body = _json_body(outcome)
                if not isinstance(body, dict):
                    return _failure(UNEXPECTED_MESSAGE, status=500, kind=ErrorKind.DECODE)
                return _normalize_envelope(body, outcome.status_code)
            return _normalize_error_response(outcome, is_login)

        if isinstance(outcome, dict):
            return _normalize_envelope(outcome)

        return _failure(UNEXPECTED_MESSAGE, status=500)
    except Exception:
        logger.error("Fallo inesperado normalizando una respuesta", exc_info=True)
        return _failure(UNEXPECTED_MESSAGE, status=500)
