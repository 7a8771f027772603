# backend/tienda/services/auth_service.py
"""
Servicio de autenticación: login y logout contra la API remota.
"""
import logging
from typing import Any, Dict

from tienda.core.errors import TiendaError
from tienda.crud import auth_crud
from tienda.crud.http_client import ApiClient
from tienda.schemas.auth_schema import LoginData
from tienda.schemas.response_schema import OperationResult
from tienda.services.base import RemoteStateMixin
from tienda.services.session_guard import SessionGuard

logger = logging.getLogger(__name__)


class AuthService(RemoteStateMixin):

    def __init__(self, client: ApiClient, guard: SessionGuard):
        self.client = client
        self.session = client.session
        self.guard = guard
        self._init_state()

    async def login(self, credentials: Dict[str, Any], user_type: str = "client") -> OperationResult:
        """
        Inicia sesión. Un 401 aquí son credenciales incorrectas: no se toca
        la sesión existente ni se redirige.
        """
        self.reset_state()
        try:
            result = await auth_crud.login(self.client, credentials, user_type)
            data: LoginData = result.data
            await self.session.set_credentials(data.access_token, data.user, user_type, data.expiresIn)
            logger.info(f"Sesión iniciada para el usuario {data.user.get('id')} ({user_type})")
            return self._succeed(result, data.user)
        except TiendaError as e:
            return self._fail(e)
        finally:
            self.loading = False

    async def logout(self) -> OperationResult:
        """Cierra la sesión remota; la limpieza local se hace aunque la llamada falle."""
        self.reset_state()
        user_type = self.session.user_type
        try:
            if self.session.token:
                await auth_crud.logout(self.client, user_type)
        except TiendaError as e:
            logger.warning(f"Error en el logout remoto, se cierra la sesión local igualmente: {e.message}")
        finally:
            self.loading = False

        await self.guard.teardown()
        self.success = True
        self.message = "Sesión cerrada"
        return OperationResult(success=True, message=self.message)
