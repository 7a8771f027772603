# backend/tienda/services/session_guard.py
"""
Guardián de sesión.

Observa el canal de errores del cliente HTTP: un 401 fuera del login
significa que el token ya no vale, así que se borran las credenciales, se
detienen las consultas de pago y se pide ir al login (salvo que la ruta
actual sea pública). El cierre de sesión explícito borra además todas las
claves de la sesión.
"""
import logging
from typing import List

from tienda.core.session import SessionContext

logger = logging.getLogger(__name__)


class SessionGuard:
    def __init__(self, session: SessionContext):
        self.session = session
        self._pollers: List = []

    def watch_poller(self, poller) -> None:
        """Registra un componente con `stop_polling()` que debe pararse al perder la sesión."""
        if poller not in self._pollers:
            self._pollers.append(poller)

    def stop_pollers(self) -> None:
        for poller in self._pollers:
            poller.stop_polling()

    async def handle_unauthorized(self) -> None:
        """Respuesta a un 401 de una llamada que no es de login."""
        logger.warning("Token inválido o expirado: se limpian las credenciales de la sesión")
        self.stop_pollers()
        await self.session.clear_credentials()

        navigator = self.session.navigator
        if not navigator.is_public():
            navigator.navigate(self.session.settings.LOGIN_PATH)

    async def teardown(self) -> None:
        """Cierre completo de la sesión (logout explícito o forzado)."""
        self.stop_pollers()
        await self.session.teardown()
