# backend/tienda/crud/order_crud.py
"""
Operaciones remotas para pedidos y pagos del cliente.

Cada función corresponde a un endpoint del servicio de pedidos y decodifica
su `data` con el esquema documentado del endpoint. Los fallos se propagan
como TiendaError para que el servicio que llama los capture en su borde.
"""

from typing import Optional

from tienda.crud.http_client import ApiClient, expect
from tienda.schemas.order_schema import Order, OrderCreate, PaymentPreference, PaymentStatusData
from tienda.schemas.response_schema import NormalizedResult

ORDER_INCLUDES = {"include": "products,order_details"}

async def create_order(client: ApiClient, order: OrderCreate, idempotency_key: Optional[str] = None) -> NormalizedResult:
    """POST client/orders -> data: Order"""
    headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
    result = await client.post("client/orders", json=order.model_dump(), headers=headers)
    return expect(result, Order)

async def get_my_orders(client: ApiClient) -> NormalizedResult:
    """GET client/orders -> data: [Order]"""
    result = await client.get("client/orders", params=ORDER_INCLUDES)
    return expect(result, Order, many=True)

async def get_order_by_id(client: ApiClient, order_id: int) -> NormalizedResult:
    """GET client/orders/{id} -> data: Order"""
    result = await client.get(f"client/orders/{order_id}", params=ORDER_INCLUDES)
    return expect(result, Order)

async def cancel_order(client: ApiClient, order_id: int) -> NormalizedResult:
    """PATCH client/orders/{id}/cancel -> data ignorado"""
    result = await client.patch(f"client/orders/{order_id}/cancel")
    return expect(result)

async def generate_payment_link(client: ApiClient, order_id: int) -> NormalizedResult:
    """POST client/orders/{id}/payment -> data: PaymentPreference"""
    result = await client.post(f"client/orders/{order_id}/payment")
    return expect(result, PaymentPreference)

async def create_payment_preference(client: ApiClient, order_id: int) -> NormalizedResult:
    """POST client/orders/{id}/payment-preference -> data: PaymentPreference"""
    result = await client.post(f"client/orders/{order_id}/payment-preference")
    return expect(result, PaymentPreference)

async def get_payment_status(client: ApiClient, order_id: int) -> NormalizedResult:
    """GET payment-status/{id} -> data: PaymentStatusData"""
    result = await client.get(f"payment-status/{order_id}")
    return expect(result, PaymentStatusData)
