# backend/tienda/main.py
"""
Punto de entrada principal de la aplicación FastAPI.

Expone las acciones de la tienda (carrito, checkout, órdenes, pagos y
sesión) sobre HTTP. Cada sesión se identifica en la ruta y tiene sus
propios componentes, creados bajo demanda por el registro de sesiones.
"""
import logging

from fastapi import FastAPI

from tienda.api.v1.api_router import api_router_v1
from tienda.core.config import settings
from tienda.db.storage import close_storage
from tienda.services.storefront import SessionRegistry

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

# ========================================
# CONFIGURACIÓN DE LA APLICACIÓN FASTAPI
# ========================================

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    version=settings.PROJECT_VERSION,
    description="API de carrito, checkout y pagos de la tienda"
)

app.state.registry = SessionRegistry(settings)

app.include_router(api_router_v1, prefix=settings.API_V1_STR)


@app.get("/", tags=["Root"])
async def read_root():
    """
    Endpoint raíz para verificación básica del estado de la API.
    """
    return {"message": f"Bienvenido a {settings.PROJECT_NAME} v{settings.PROJECT_VERSION}"}

# ========================================
# EVENTOS DEL CICLO DE VIDA DE LA APLICACIÓN
# ========================================

@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.PROJECT_NAME} iniciada; API remota en {settings.REMOTE_API_URL}, "
                f"almacenamiento '{settings.STORAGE_BACKEND}'")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Detiene las consultas de pago activas y libera los clientes HTTP y la
    conexión con Redis.
    """
    await app.state.registry.aclose_all()
    await close_storage()
