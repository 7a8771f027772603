# backend/tienda/api/v1/endpoints/cart.py
"""
Este archivo contiene los endpoints para el carrito de compras.

Se encarga de añadir, quitar y ajustar productos, consultar el contenido
del carrito, validarlo contra el stock capturado y pasar al checkout.
"""

from fastapi import APIRouter, Depends

from tienda.api import deps
from tienda.schemas.cart_schema import ProductInput, QuantityUpdate, StockUpdate
from tienda.schemas.response_schema import OperationResult
from tienda.services.storefront import Storefront

# Router para el carrito de compras
router = APIRouter()

@router.get("")
async def get_cart(storefront: Storefront = Depends(deps.get_storefront)):
    """
    Obtiene el contenido del carrito con sus totales.
    """
    return deps.to_response(storefront, deps.cart_result(storefront, True))

@router.delete("")
async def clear_cart(storefront: Storefront = Depends(deps.get_storefront)):
    """
    Vacía completamente el carrito.
    """
    await storefront.cart.clear()
    return deps.to_response(storefront, deps.cart_result(storefront, True))

@router.post("/items", status_code=201)
async def add_item_to_cart(product: ProductInput, storefront: Storefront = Depends(deps.get_storefront)):
    """
    Añade una unidad del producto, respetando el stock disponible.
    """
    ok = await storefront.cart.add_item(product)
    result = deps.cart_result(storefront, ok)
    if ok:
        result.status = 201
    return deps.to_response(storefront, result)

@router.put("/items/{product_id}")
async def set_item_quantity(product_id: int, body: QuantityUpdate,
                            storefront: Storefront = Depends(deps.get_storefront)):
    ok = await storefront.cart.set_quantity(product_id, body.quantity)
    return deps.to_response(storefront, deps.cart_result(storefront, ok))

@router.delete("/items/{product_id}")
async def remove_item_from_cart(product_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    """
    Elimina un producto del carrito. No falla si el producto no estaba.
    """
    await storefront.cart.remove_item(product_id)
    return deps.to_response(storefront, deps.cart_result(storefront, True))

@router.post("/items/{product_id}/increment")
async def increment_item(product_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    ok = await storefront.cart.increment(product_id)
    return deps.to_response(storefront, deps.cart_result(storefront, ok))

@router.post("/items/{product_id}/decrement")
async def decrement_item(product_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    ok = await storefront.cart.decrement(product_id)
    return deps.to_response(storefront, deps.cart_result(storefront, ok))

@router.put("/items/{product_id}/stock")
async def update_item_stock(product_id: int, body: StockUpdate,
                            storefront: Storefront = Depends(deps.get_storefront)):
    """
    Reconciliación con un stock conocido: recorta la cantidad o quita la línea.
    """
    ok = await storefront.cart.reconcile_stock(product_id, body.stock)
    return deps.to_response(storefront, deps.cart_result(storefront, ok))

@router.post("/items/{product_id}/stock/refresh")
async def refresh_item_stock(product_id: int, storefront: Storefront = Depends(deps.get_storefront)):
    """
    Consulta el stock actual del producto en la API remota y lo reconcilia.
    """
    result = await storefront.checkout.refresh_stock(product_id)
    return deps.to_response(storefront, result)

@router.post("/validate")
async def validate_cart(storefront: Storefront = Depends(deps.get_storefront)):
    ok = await storefront.cart.validate()
    return deps.to_response(storefront, deps.cart_result(storefront, ok))

@router.post("/checkout")
async def checkout(storefront: Storefront = Depends(deps.get_storefront)):
    """
    Procesa el paso al checkout:
    1. Sin sesión de cliente, guarda el carrito como pendiente y redirige al login.
    2. Valida el carrito contra el stock capturado.
    3. Guarda la copia del carrito para crear la orden y redirige a órdenes.
    """
    result: OperationResult = await storefront.checkout.proceed_to_checkout()
    return deps.to_response(storefront, result)
