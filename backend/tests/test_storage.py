# backend/tests/test_storage.py
import pytest

from tienda.core.config import Settings
from tienda.core.session import (
    CART_KEY,
    SESSION_TEARDOWN_KEYS,
    TOKEN_KEY,
    Navigator,
    SessionContext,
)
from tienda.db import storage as storage_module
from tienda.db.storage import MemoryStorage, RedisStorage, get_storage, load_json, save_json


class FakeRedis:
    """Sustituto mínimo de redis.asyncio.Redis con decode_responses=True."""

    def __init__(self):
        self.data = {}
        self.closed = False

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value

    async def delete(self, *keys):
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

    async def exists(self, key):
        return int(key in self.data)

    async def aclose(self):
        self.closed = True


class TestBackends:

    async def test_redis_storage_prefixes_keys(self):
        redis = FakeRedis()
        store = RedisStorage(redis, "tienda:abc")

        await save_json(store, CART_KEY, [{"product_id": 1}])

        assert list(redis.data) == ["tienda:abc:cart"]
        assert await load_json(store, CART_KEY) == [{"product_id": 1}]
        assert await store.exists(CART_KEY)

        await store.delete(CART_KEY, TOKEN_KEY)
        assert not await store.exists(CART_KEY)

    async def test_memory_namespaces_are_isolated(self):
        shared = {}
        first = MemoryStorage("tienda:1", shared)
        second = MemoryStorage("tienda:2", shared)

        await first.set("cart", "[]")

        assert await second.get("cart") is None
        assert await first.get("cart") == "[]"

    async def test_corrupt_json_is_treated_as_missing(self):
        store = MemoryStorage("tienda:x")
        await store.set("cart", "{roto")

        assert await load_json(store, "cart") is None

    def test_get_storage_uses_configured_backend(self, monkeypatch):
        fake = FakeRedis()
        monkeypatch.setattr(storage_module, "_redis_client", fake)

        memory = get_storage(Settings(STORAGE_BACKEND="memory"), "s1")
        redis = get_storage(Settings(STORAGE_BACKEND="redis"), "s1")

        assert isinstance(memory, MemoryStorage)
        assert memory.namespace == "tienda:s1"
        assert isinstance(redis, RedisStorage)
        assert redis.redis is fake

    async def test_close_storage(self, monkeypatch):
        fake = FakeRedis()
        monkeypatch.setattr(storage_module, "_redis_client", fake)

        await storage_module.close_storage()

        assert fake.closed
        assert storage_module._redis_client is None

    def test_redis_url(self):
        settings = Settings(REDIS_HOST="cache", REDIS_PORT=6380, REDIS_DB=2, REDIS_PASSWORD="s3cr3t")

        assert settings.REDIS_URL == "redis://:s3cr3t@cache:6380/2"


class TestSessionContext:

    async def test_init_restores_saved_credentials(self, storage, settings):
        first = SessionContext(storage, settings=settings)
        await first.set_credentials("tok", {"id": 1, "role_name": "Vendedor"}, "staff", expires_in=60)

        restored = await SessionContext(storage, settings=settings).init()

        assert restored.token == "tok"
        assert restored.user == {"id": 1, "role_name": "Vendedor"}
        assert restored.user_type == "staff"
        assert restored.user_role == "vendedor"
        assert restored.expires_at == pytest.approx(first.expires_at)

    async def test_clear_credentials_keeps_cart(self, storage, session):
        await session.set_credentials("tok", {"id": 1, "role_name": "Vendedor"}, "staff")
        await storage.set(CART_KEY, "[]")

        await session.clear_credentials()

        assert session.token is None
        assert session.user_role == "client"
        assert not await storage.exists(TOKEN_KEY)
        assert await storage.exists(CART_KEY)

    async def test_teardown_deletes_all_keys_and_runs_hooks(self, storage, session):
        for key in SESSION_TEARDOWN_KEYS:
            await storage.set(key, '"x"')
        calls = []

        async def async_hook():
            calls.append("async")

        session.on_teardown(lambda: calls.append("sync"))
        session.on_teardown(async_hook)

        await session.teardown()

        assert calls == ["sync", "async"]
        for key in SESSION_TEARDOWN_KEYS:
            assert not await storage.exists(key)


class TestNavigator:

    @pytest.mark.parametrize("path, public", [
        ("/", True),
        ("/auth/login", True),
        ("/auth/employee-login", True),
        ("/shop/register", True),
        ("/orders", False),
        ("/account/profile", False),
    ])
    def test_public_paths(self, path, public):
        navigator = Navigator(["/", "/auth/login", "/auth/register", "/auth/employee-login"])

        assert navigator.is_public(path) is public

    def test_redirect_is_consumed_once(self):
        navigator = Navigator([])
        navigator.navigate("/auth/login")

        assert navigator.current_path == "/auth/login"
        assert navigator.consume_redirect() == "/auth/login"
        assert navigator.consume_redirect() is None
