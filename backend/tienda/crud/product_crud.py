# backend/tienda/crud/product_crud.py
"""
Lectura remota de productos, usada para refrescar el stock del carrito.
"""

from tienda.crud.http_client import ApiClient, expect
from tienda.schemas.cart_schema import ProductInput
from tienda.schemas.response_schema import NormalizedResult

async def get_product(client: ApiClient, product_id: int) -> NormalizedResult:
    """GET products/{id} -> data: ProductInput"""
    result = await client.get(f"products/{product_id}")
    return expect(result, ProductInput)
