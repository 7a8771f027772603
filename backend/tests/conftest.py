# backend/tests/conftest.py
"""
Fixtures comunes: configuración de pruebas, almacenamiento en memoria y una
API remota falsa servida con httpx.MockTransport.
"""
import inspect
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from tienda.core.config import Settings
from tienda.core.session import SessionContext
from tienda.db.storage import MemoryStorage
from tienda.services.storefront import Storefront

REMOTE_API_URL = "http://tienda.test/api"


class FakeRemote:
    """
    API remota falsa. Las rutas se registran por (método, ruta relativa) y
    cada petición recibida queda guardada en `requests`.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json: Any = None,
           handler: Optional[Callable] = None) -> None:
        if handler is None:
            def handler(request, _status=status, _json=json):
                return httpx.Response(_status, json=_json)
        self.routes[(method.upper(), path)] = handler

    def ok(self, method: str, path: str, data: Any = None, message: str = "OK", status: int = 200) -> None:
        """Registra una respuesta con el sobre de éxito estándar."""
        self.on(method, path, status=status,
                json={"success": True, "message": message, "data": data, "status": status})

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and self._relative(r) == path]

    @staticmethod
    def _relative(request: httpx.Request) -> str:
        return request.url.path[len("/api/"):]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, self._relative(request)))
        if handler is None:
            return httpx.Response(404, json={"success": False, "message": "Not Found"})
        response = handler(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def make_product(product_id: int = 1, stock: int = 5, price: float = 10.0,
                 regular_price: Optional[float] = None, name: Optional[str] = None) -> Dict[str, Any]:
    """Producto tal como lo entrega el catálogo."""
    return {
        "id": product_id,
        "name": name or f"Producto {product_id}",
        "code": f"P-{product_id:03d}",
        "brand": "Marca",
        "image": None,
        "stock": {"quantity": stock, "sale_price": price, "regular_price": regular_price},
    }


def make_order(order_id: int = 100, status: str = "pendiente_pago", **extra) -> Dict[str, Any]:
    order = {
        "id": order_id,
        "status": status,
        "delivery_address_id": 3,
        "products": [{"product_id": 1, "quantity": 2}],
        "observations": None,
        "payment_status": None,
        "total": 20.0,
    }
    order.update(extra)
    return order


@pytest.fixture
def settings():
    return Settings(
        REMOTE_API_URL=REMOTE_API_URL,
        STORAGE_BACKEND="memory",
        PAYMENT_POLL_INTERVAL_MS=10,
        REQUEST_TIMEOUT=5.0,
    )


@pytest.fixture
def storage():
    return MemoryStorage("test:session")


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def session(storage, settings):
    return SessionContext(storage, settings=settings)


@pytest.fixture
async def storefront(session, remote):
    store = await Storefront.create(session, transport=remote.transport)
    yield store
    await store.aclose()


@pytest.fixture
async def client_storefront(storefront):
    """Storefront con una sesión de cliente ya autenticada en una ruta privada."""
    await storefront.session.set_credentials("token-123", {"id": 9, "name": "Ana", "role_name": "Client"}, "client")
    storefront.session.navigator.current_path = "/account/orders"
    return storefront
