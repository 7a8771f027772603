# backend/tienda/services/storefront.py
"""
Raíz de composición: conecta los componentes de una sesión.

Cada Storefront agrupa, para una sesión, el contexto, el cliente HTTP, el
guardián de sesión, el carrito y los servicios de pedidos, pagos, checkout
y autenticación. SessionRegistry mantiene un Storefront por identificador
de sesión dentro del proceso de la API.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from tienda.core.config import Settings
from tienda.core.session import SessionContext
from tienda.crud.http_client import ApiClient
from tienda.db.storage import get_storage
from tienda.schemas.response_schema import OperationResult
from tienda.services.auth_service import AuthService
from tienda.services.cart_service import CartService
from tienda.services.checkout_service import CheckoutService
from tienda.services.order_service import OrderService
from tienda.services.payment_service import PaymentService
from tienda.services.session_guard import SessionGuard

logger = logging.getLogger(__name__)


class Storefront:
    """Componentes de una sesión, ya conectados entre sí."""

    def __init__(self, session: SessionContext, cart: CartService,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.session = session
        self.client = ApiClient(session, transport=transport)
        self.guard = SessionGuard(session)
        self.client.attach_guard(self.guard)

        self.cart = cart
        self.orders = OrderService(self.client, cart)
        self.payments = PaymentService(self.orders)
        self.guard.watch_poller(self.payments)
        self.checkout = CheckoutService(session, cart, self.orders, self.payments)
        self.auth = AuthService(self.client, self.guard)

        session.on_teardown(self.orders.reset)
        session.on_teardown(self.payments.clear_payment_status)

    @classmethod
    async def create(cls, session: SessionContext,
                     transport: Optional[httpx.AsyncBaseTransport] = None) -> "Storefront":
        """Inicializa la sesión y restaura el carrito guardado."""
        await session.init()
        cart = await CartService.create(session)
        return cls(session, cart, transport=transport)

    async def login(self, credentials: Dict[str, Any], user_type: str = "client") -> OperationResult:
        """Login; una sesión de cliente recupera el carrito pendiente."""
        result = await self.auth.login(credentials, user_type)
        if result.success and user_type == "client":
            await self.checkout.restore_pending_cart()
        return result

    async def logout(self) -> OperationResult:
        return await self.auth.logout()

    async def aclose(self) -> None:
        self.payments.stop_polling()
        await self.client.aclose()


class SessionRegistry:
    """
    Un Storefront por identificador de sesión. La creación está protegida con
    un lock para que dos peticiones simultáneas no creen dos storefronts.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None,
                 storage_factory: Optional[Callable[[Settings, str], Any]] = None):
        self.settings = settings
        self.transport = transport
        self.storage_factory = storage_factory or get_storage
        self._storefronts: Dict[str, Storefront] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> Storefront:
        storefront = self._storefronts.get(session_id)
        if storefront is not None:
            return storefront

        async with self._lock:
            storefront = self._storefronts.get(session_id)
            if storefront is None:
                storage = self.storage_factory(self.settings, session_id)
                session = SessionContext(storage, settings=self.settings)
                storefront = await Storefront.create(session, transport=self.transport)
                self._storefronts[session_id] = storefront
                logger.info(f"Sesión {session_id} inicializada")
        return storefront

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._storefronts

    async def discard(self, session_id: str) -> None:
        """Saca la sesión del registro y cierra su cliente HTTP."""
        async with self._lock:
            storefront = self._storefronts.pop(session_id, None)
        if storefront is not None:
            await storefront.aclose()
            logger.info(f"Sesión {session_id} liberada")

    async def aclose_all(self) -> None:
        """Detiene todas las consultas de pago y cierra los clientes HTTP."""
        for storefront in list(self._storefronts.values()):
            await storefront.aclose()
        self._storefronts.clear()
        logger.info("Todas las sesiones cerradas")
