# backend/tienda/core/session.py
"""
Contexto de sesión explícito.

Agrupa las credenciales, el almacenamiento durable y la navegación de una
sesión. Se inyecta en el constructor de cada componente (cliente HTTP,
carrito, pedidos, pagos, guardián de sesión) en lugar de consultarse como
estado global.
"""
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from tienda.core.config import Settings, settings as default_settings
from tienda.db.storage import load_json, save_json

logger = logging.getLogger(__name__)

# Claves durables de la sesión
TOKEN_KEY = "token"
CURRENT_USER_KEY = "currentUser"
USER_TYPE_KEY = "userType"
USER_ROLE_KEY = "userRole"
EXPIRES_AT_KEY = "expiresAt"
CART_KEY = "cart"
CHECKOUT_KEY = "checkoutCart"
PENDING_CART_KEY = "pendingCart"
PENDING_ORDER_KEY = "pendingOrderId"
CURRENT_ORDER_KEY = "currentOrderId"

CREDENTIAL_KEYS = (TOKEN_KEY, CURRENT_USER_KEY, USER_TYPE_KEY, USER_ROLE_KEY, EXPIRES_AT_KEY)

# Lista única de todo lo que se borra al cerrar sesión
SESSION_TEARDOWN_KEYS = (
    TOKEN_KEY,
    CURRENT_USER_KEY,
    USER_TYPE_KEY,
    USER_ROLE_KEY,
    EXPIRES_AT_KEY,
    CART_KEY,
    CHECKOUT_KEY,
    PENDING_CART_KEY,
    PENDING_ORDER_KEY,
    CURRENT_ORDER_KEY,
)

TeardownHook = Callable[[], Union[None, Awaitable[None]]]


class Navigator:
    """
    Modelo mínimo de la navegación: la ruta actual y la última redirección
    solicitada por el núcleo. El renderizado de rutas queda fuera.
    """

    def __init__(self, public_paths: List[str], current_path: str = "/"):
        self.public_paths = list(public_paths)
        self.current_path = current_path
        self.redirect_to: Optional[str] = None

    def is_public(self, path: Optional[str] = None) -> bool:
        path = self.current_path if path is None else path
        if path in self.public_paths:
            return True
        return "/login" in path or "/register" in path

    def navigate(self, path: str) -> None:
        self.redirect_to = path
        self.current_path = path

    def consume_redirect(self) -> Optional[str]:
        target, self.redirect_to = self.redirect_to, None
        return target


class SessionContext:
    """
    Estado de una sesión de usuario con ciclo de vida explícito:
    `init()` carga las credenciales guardadas y `teardown()` borra todas las
    claves de SESSION_TEARDOWN_KEYS y ejecuta los hooks registrados.
    """

    def __init__(self, storage, settings: Optional[Settings] = None, navigator: Optional[Navigator] = None):
        self.storage = storage
        self.settings = settings or default_settings
        self.navigator = navigator or Navigator(self.settings.PUBLIC_PATHS)
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self.user_type: str = "client"
        self.user_role: str = "client"
        self.expires_at: Optional[float] = None
        self._teardown_hooks: List[TeardownHook] = []

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def init(self) -> "SessionContext":
        """Carga las credenciales persistidas, si existen."""
        self.token = await load_json(self.storage, TOKEN_KEY)
        self.user = await load_json(self.storage, CURRENT_USER_KEY)
        self.user_type = await load_json(self.storage, USER_TYPE_KEY) or "client"
        self.user_role = await load_json(self.storage, USER_ROLE_KEY) or "client"
        self.expires_at = await load_json(self.storage, EXPIRES_AT_KEY)
        return self

    async def set_credentials(self, token: str, user: Dict[str, Any], user_type: str = "client",
                              expires_in: Optional[float] = None) -> None:
        self.token = token
        self.user = user
        self.user_type = user_type
        role_name = user.get("role_name") if isinstance(user, dict) else None
        self.user_role = role_name.lower() if role_name else "client"
        self.expires_at = time.time() + expires_in if expires_in else None

        await save_json(self.storage, TOKEN_KEY, self.token)
        await save_json(self.storage, CURRENT_USER_KEY, self.user)
        await save_json(self.storage, USER_TYPE_KEY, self.user_type)
        await save_json(self.storage, USER_ROLE_KEY, self.user_role)
        if self.expires_at is not None:
            await save_json(self.storage, EXPIRES_AT_KEY, self.expires_at)

    async def clear_credentials(self) -> None:
        """Borra sólo las credenciales; carrito, pedidos y pagos no se tocan."""
        self.token = None
        self.user = None
        self.user_type = "client"
        self.user_role = "client"
        self.expires_at = None
        await self.storage.delete(*CREDENTIAL_KEYS)

    def on_teardown(self, hook: TeardownHook) -> None:
        self._teardown_hooks.append(hook)

    async def teardown(self) -> None:
        self.token = None
        self.user = None
        self.user_type = "client"
        self.user_role = "client"
        self.expires_at = None
        await self.storage.delete(*SESSION_TEARDOWN_KEYS)

        for hook in self._teardown_hooks:
            outcome = hook()
            if inspect.isawaitable(outcome):
                await outcome
        logger.info("Sesión cerrada: todas las claves de sesión eliminadas")
