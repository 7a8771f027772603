# backend/tienda/api/v1/api_router.py
"""
Este archivo contiene el router principal para la API versión 1.

Todas las rutas cuelgan de /sessions/{session_id}: cada identificador de
sesión tiene su propio carrito, credenciales y consulta de pago.
"""

from fastapi import APIRouter

from tienda.api.v1.endpoints import (
    auth,
    cart,
    orders
)

# ========================================
# CONFIGURACIÓN DEL ROUTER PRINCIPAL V1
# ========================================

api_router_v1 = APIRouter()

SESSION_PREFIX = "/sessions/{session_id}"

# ROUTER DE AUTENTICACIÓN
api_router_v1.include_router(
    auth.router,
    prefix=f"{SESSION_PREFIX}/auth",
    tags=["Auth"]
)

# ROUTER DEL CARRITO
api_router_v1.include_router(
    cart.router,
    prefix=f"{SESSION_PREFIX}/cart",
    tags=["Cart"]
)

# ROUTER DE ÓRDENES Y PAGOS
api_router_v1.include_router(
    orders.router,
    prefix=f"{SESSION_PREFIX}/orders",
    tags=["Orders"]
)
