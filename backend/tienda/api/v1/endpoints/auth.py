# backend/tienda/api/v1/endpoints/auth.py
"""
Endpoints de inicio y cierre de sesión.
"""

from fastapi import APIRouter, Depends

from tienda.api import deps
from tienda.schemas.auth_schema import LoginRequest
from tienda.services.storefront import SessionRegistry, Storefront

router = APIRouter()

@router.post("/login")
async def login(body: LoginRequest, storefront: Storefront = Depends(deps.get_storefront)):
    """
    Inicia sesión contra la API remota. Con éxito, un cliente recupera el
    carrito que dejó pendiente antes de autenticarse.
    """
    result = await storefront.login({"email": body.email, "password": body.password}, body.user_type)
    return deps.to_response(storefront, result)

@router.post("/logout")
async def logout(session_id: str, storefront: Storefront = Depends(deps.get_storefront),
                 registry: SessionRegistry = Depends(deps.get_registry)):
    """Cierra la sesión, borra todas sus claves y la saca del registro."""
    result = await storefront.logout()
    response = deps.to_response(storefront, result)
    await registry.discard(session_id)
    return response
