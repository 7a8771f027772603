# backend/tienda/db/storage.py
"""
Almacenamiento durable clave/valor para el carrito y la sesión.

Equivale al localStorage del navegador: cada sesión tiene su propio espacio
de nombres y los valores se guardan como cadenas JSON. Existen dos
implementaciones con la misma interfaz asíncrona:
- RedisStorage: persiste en Redis usando redis.asyncio.
- MemoryStorage: diccionario en memoria del proceso (desarrollo y tests).

Las escrituras son "last write wins"; no se intenta ninguna fusión entre
sesiones concurrentes.
"""
import json
import logging
from typing import Any, Dict, Optional

from redis.asyncio import Redis

from tienda.core.config import Settings

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Almacenamiento en memoria, compartido por todas las instancias con el mismo dict."""

    def __init__(self, namespace: str, data: Optional[Dict[str, str]] = None):
        self.namespace = namespace
        self._data = data if data is not None else {}

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(self._key(key))

    async def set(self, key: str, value: str) -> None:
        self._data[self._key(key)] = value

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(self._key(key), None)

    async def exists(self, key: str) -> bool:
        return self._key(key) in self._data


class RedisStorage:
    """Almacenamiento en Redis. Cada clave se prefija con el espacio de nombres de la sesión."""

    def __init__(self, redis: Redis, namespace: str):
        self.redis = redis
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(self._key(key))

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(self._key(key), value)

    async def delete(self, *keys: str) -> None:
        if keys:
            await self.redis.delete(*[self._key(k) for k in keys])

    async def exists(self, key: str) -> bool:
        return bool(await self.redis.exists(self._key(key)))


# ===============================================
# Helpers JSON
# ===============================================

async def load_json(storage, key: str) -> Optional[Any]:
    """
    Lee y decodifica un valor JSON. Un valor corrupto se registra y se trata
    como ausente; nunca es un error fatal.
    """
    raw = await storage.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.error(f"Valor corrupto en el almacenamiento para la clave '{key}', se descarta")
        return None


async def save_json(storage, key: str, value: Any) -> None:
    await storage.set(key, json.dumps(value))


# ===============================================
# Fábrica
# ===============================================

_redis_client: Optional[Redis] = None
_memory_data: Dict[str, str] = {}


def _get_redis_client(settings: Settings) -> Redis:
    """Inicializa y devuelve el cliente de Redis (lazy)."""
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


def get_storage(settings: Settings, session_id: str):
    """Devuelve el almacenamiento configurado para una sesión."""
    namespace = f"{settings.STORAGE_NAMESPACE}:{session_id}"
    if settings.STORAGE_BACKEND == "redis":
        return RedisStorage(_get_redis_client(settings), namespace)
    return MemoryStorage(namespace, _memory_data)


async def close_storage() -> None:
    """Cierra la conexión con Redis si se abrió."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
