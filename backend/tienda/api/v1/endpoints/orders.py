# backend/tienda/api/v1/endpoints/orders.py
"""
Endpoints de órdenes y pagos de la sesión.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends

from tienda.api import deps
from tienda.schemas.order_schema import OrderFromCartRequest, PollingRequest
from tienda.schemas.response_schema import OperationResult
from tienda.services.storefront import Storefront

router = APIRouter()

@router.get("")
async def list_orders(storefront: Storefront = Depends(deps.get_storefront)):
    """
    Obtiene las órdenes del cliente autenticado.
    """
    result = await storefront.orders.fetch_orders()
    return deps.to_response(storefront, result)

@router.post("", status_code=201)
async def create_order(body: OrderFromCartRequest, storefront: Storefront = Depends(deps.get_storefront)):
    """
    Crea una orden a partir del checkout preparado (o del carrito actual).
    Con `pay=true` genera además el enlace de pago y redirige a él.
    """
    if body.pay:
        result = await storefront.checkout.create_order_and_pay(body.delivery_address_id, body.observations)
    else:
        result = await storefront.checkout.create_order_from_cart(body.delivery_address_id, body.observations)
    if result.success:
        result.status = 201
    return deps.to_response(storefront, result)

@router.get("/{order_id}")
async def get_order(order_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    result = await storefront.orders.fetch_order_by_id(order_id)
    return deps.to_response(storefront, result)

@router.patch("/{order_id}/cancel")
async def cancel_order(order_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    """
    Cancela la orden si su estado lo permite.
    """
    result = await storefront.orders.cancel_order(order_id)
    return deps.to_response(storefront, result)

@router.post("/{order_id}/payment")
async def generate_payment(order_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    """
    Genera el enlace de pago y devuelve la redirección al checkout del procesador.
    """
    result = await storefront.checkout.generate_payment_for_order(order_id)
    return deps.to_response(storefront, result)

@router.get("/{order_id}/payment-status")
async def get_payment_status(order_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    result = await storefront.payments.check_payment_status(order_id)
    return deps.to_response(storefront, result)

@router.post("/{order_id}/payment-polling", status_code=202)
async def start_payment_polling(order_id: int, body: Optional[PollingRequest] = Body(None),
                                storefront: Storefront = Depends(deps.get_storefront)):
    """
    Inicia la consulta periódica del estado de pago. Sustituye a cualquier
    consulta anterior de la sesión.
    """
    storefront.payments.start_polling(order_id, body.interval_ms if body else None)
    result = OperationResult(success=True, message="Consulta de pago iniciada", status=202,
                             data={"order_id": order_id, "polling": True})
    return deps.to_response(storefront, result)

@router.delete("/{order_id}/payment-polling")
async def stop_payment_polling(order_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    storefront.payments.stop_polling()
    result = OperationResult(success=True, message="Consulta de pago detenida",
                             data={"order_id": order_id, "polling": False})
    return deps.to_response(storefront, result)
