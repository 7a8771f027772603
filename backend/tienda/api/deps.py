# backend/tienda/api/deps.py
"""
Módulo de dependencias para FastAPI.

Centraliza lo que se inyecta en los endpoints: el registro de sesiones y
el Storefront de la sesión de la petición. También convierte los
OperationResult en respuestas HTTP.
"""

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from tienda.core.errors import ErrorKind, LocalValidationError
from tienda.schemas.response_schema import OperationResult
from tienda.services.storefront import SessionRegistry, Storefront

def get_registry(request: Request) -> SessionRegistry:
    """
    Dependencia de FastAPI para obtener el registro de sesiones de la aplicación.
    """
    return request.app.state.registry

async def get_storefront(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> Storefront:
    """
    Devuelve (creándolo si hace falta) el Storefront de la sesión indicada en la ruta.
    """
    return await registry.get(session_id)

def cart_result(storefront: Storefront, ok: bool) -> OperationResult:
    """Traduce el booleano de una operación de carrito a un OperationResult."""
    cart = storefront.cart
    if ok:
        return OperationResult(success=True, data=cart.summary())
    error = LocalValidationError(cart.error or "Operación de carrito no válida")
    return OperationResult(success=False, message=error.message, data=cart.summary(),
                           status=error.status, kind=error.kind)

def to_response(storefront: Storefront, result: OperationResult) -> JSONResponse:
    """
    Serializa el resultado con el código HTTP que le corresponde y añade la
    redirección pedida por el núcleo, si la hay.
    """
    if result.success:
        status_code = result.status if 200 <= result.status < 300 else 200
    elif result.kind == ErrorKind.TRANSIENT_NETWORK or result.status == 0:
        status_code = 503
    elif result.status >= 400:
        status_code = result.status
    else:
        status_code = 400

    body = result.model_dump(mode="json")
    body["redirect_to"] = storefront.session.navigator.consume_redirect()
    return JSONResponse(status_code=status_code, content=body)
