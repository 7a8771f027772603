# backend/tienda/crud/http_client.py
"""
Cliente HTTP de la API remota de la tienda.

Es el único punto de contacto con la red: añade el token Bearer de la
sesión, convierte cada resultado con el normalizador y avisa al guardián de
sesión cuando una llamada que no es de login recibe un 401.
"""
import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from tienda.core.errors import ResponseDecodeError, error_for
from tienda.core.session import SessionContext
from tienda.schemas.response_schema import NormalizedResult
from tienda.services.response_normalizer import normalize

logger = logging.getLogger(__name__)

LOGIN_MARKER = "/auth/login"
DECODE_MESSAGE = "Respuesta con formato inesperado del servidor."


class ApiClient:
    """
    Envoltorio sobre httpx.AsyncClient que siempre devuelve resultados normalizados.
    """

    def __init__(self, session: SessionContext, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.session = session
        self.guard = None
        self._client = httpx.AsyncClient(
            base_url=session.settings.REMOTE_API_URL.rstrip("/") + "/",
            timeout=httpx.Timeout(session.settings.REQUEST_TIMEOUT),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )

    def attach_guard(self, guard) -> None:
        """Registra el guardián de sesión que observa los 401."""
        self.guard = guard

    def _headers(self, extra: Optional[Dict[str, str]]) -> Dict[str, str]:
        headers = dict(extra or {})
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    async def request(self, method: str, path: str, *, json: Any = None, params: Optional[Dict[str, Any]] = None,
                      headers: Optional[Dict[str, str]] = None, binary: bool = False) -> Union[NormalizedResult, httpx.Response]:
        """
        Ejecuta una petición y devuelve el resultado normalizado (o la respuesta
        cruda para descargas binarias exitosas).
        """
        url = path.lstrip("/")
        is_login = LOGIN_MARKER in f"/{url}"
        try:
            outcome = await self._client.request(method, url, json=json, params=params, headers=self._headers(headers))
        except httpx.HTTPError as e:
            logger.warning(f"Fallo de transporte en {method} {url}: {e!r}")
            outcome = e

        result = normalize(outcome, is_login=is_login, binary=binary)
        if isinstance(result, httpx.Response):
            return result

        if not result.success:
            logger.info(f"{method} {url} falló con estado {result.status}: {result.message}")
            if result.status == 401 and not is_login and self.guard is not None:
                await self.guard.handle_unauthorized()
        return result

    async def get(self, path: str, **kwargs) -> Union[NormalizedResult, httpx.Response]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Union[NormalizedResult, httpx.Response]:
        return await self.request("POST", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Union[NormalizedResult, httpx.Response]:
        return await self.request("PATCH", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


def expect(result: NormalizedResult, schema=None, many: bool = False) -> NormalizedResult:
    """
    Verifica un resultado y decodifica su `data` con el esquema del endpoint.

    Lanza el TiendaError correspondiente si el resultado es un fallo, o
    ResponseDecodeError si el payload no cumple el esquema.
    """
    if not result.success:
        raise error_for(result.kind, result.message, result.validation_errors, result.status)
    if schema is None:
        return result

    try:
        if many:
            data = TypeAdapter(List[schema]).validate_python(result.data)
        else:
            data = schema.model_validate(result.data)
    except ValidationError as e:
        logger.error(f"Payload con formato inesperado para {schema.__name__}: {e}")
        raise ResponseDecodeError(DECODE_MESSAGE)
    return result.model_copy(update={"data": data})
