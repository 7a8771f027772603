# backend/tests/test_cart_service.py
import json
import random

import pytest

from tienda.core.session import CART_KEY, CHECKOUT_KEY, PENDING_CART_KEY, SessionContext
from tienda.services.cart_service import CartService
from conftest import make_product


@pytest.fixture
async def cart(session):
    return await CartService.create(session)


def assert_stock_bound(cart: CartService):
    for line in cart.items:
        assert 0 < line.quantity <= line.available_stock


class TestAddItem:

    async def test_adds_new_line_with_captured_price_and_stock(self, cart):
        assert await cart.add_item(make_product(1, stock=3, price=12.5, regular_price=15.0)) is True

        line = cart.items[0]
        assert line.product_id == 1
        assert line.quantity == 1
        assert line.available_stock == 3
        assert line.unit_price == 12.5
        assert line.original_unit_price == 15.0

    async def test_zero_stock_is_rejected_idempotently(self, cart):
        await cart.add_item(make_product(1, stock=2))
        before = [line.model_dump() for line in cart.items]

        for _ in range(3):
            assert await cart.add_item(make_product(2, stock=0)) is False
            assert cart.error == "Producto sin stock disponible"
            assert [line.model_dump() for line in cart.items] == before

    async def test_existing_line_stops_at_stock(self, cart):
        product = make_product(1, stock=2)
        await cart.add_item(product)
        await cart.add_item(product)

        assert await cart.add_item(product) is False
        assert cart.error == "Stock insuficiente. Disponible: 2"
        assert cart.items[0].quantity == 2

    async def test_invalid_product_is_rejected(self, cart):
        assert await cart.add_item({"name": "sin id"}) is False
        assert cart.error == "Producto inválido"
        assert cart.is_empty

    async def test_success_clears_previous_error(self, cart):
        await cart.add_item(make_product(2, stock=0))
        await cart.add_item(make_product(1, stock=1))

        assert cart.error is None


class TestQuantity:

    async def test_set_quantity_beyond_stock_keeps_quantity(self, cart):
        product = make_product(7, stock=2)
        await cart.add_item(product)
        await cart.add_item(product)

        assert await cart.set_quantity(7, 5) is False
        assert cart.items[0].quantity == 2
        assert "Stock insuficiente. Disponible: 2" in cart.error

    async def test_set_quantity_zero_removes_line(self, cart):
        await cart.add_item(make_product(1, stock=4))

        assert await cart.set_quantity(1, 0) is True
        assert cart.is_empty

    @pytest.mark.parametrize("quantity", ["3", 2.5, None, True])
    async def test_set_quantity_rejects_malformed_values(self, cart, quantity):
        await cart.add_item(make_product(1, stock=4))

        assert await cart.set_quantity(1, quantity) is False
        assert cart.error == "Cantidad inválida"
        assert cart.items[0].quantity == 1

    async def test_set_quantity_unknown_product(self, cart):
        assert await cart.set_quantity(99, 1) is False
        assert cart.error == "El producto no está en el carrito"

    async def test_increment_and_decrement(self, cart):
        await cart.add_item(make_product(1, stock=2))

        assert await cart.increment(1) is True
        assert await cart.increment(1) is False
        assert cart.items[0].quantity == 2

        assert await cart.decrement(1) is True
        assert await cart.decrement(1) is True
        assert cart.is_empty

    async def test_remove_absent_product_is_a_no_op(self, cart):
        await cart.add_item(make_product(1, stock=2))

        await cart.remove_item(42)

        assert len(cart.items) == 1

    async def test_random_mutations_respect_stock_bound(self, cart):
        rng = random.Random(1234)
        products = [make_product(i, stock=rng.randint(0, 4)) for i in range(1, 6)]

        for _ in range(200):
            product = rng.choice(products)
            action = rng.choice(["add", "increment", "set", "decrement"])
            if action == "add":
                await cart.add_item(product)
            elif action == "increment":
                await cart.increment(product["id"])
            elif action == "set":
                await cart.set_quantity(product["id"], rng.randint(-1, 6))
            else:
                await cart.decrement(product["id"])
            assert_stock_bound(cart)


class TestTotals:

    async def test_totals_are_recomputed_after_each_change(self, cart):
        await cart.add_item(make_product(1, stock=5, price=10.0, regular_price=12.0))
        await cart.add_item(make_product(2, stock=5, price=3.5))
        await cart.set_quantity(1, 3)

        assert cart.total_items == 4
        assert cart.total_price == pytest.approx(sum(l.unit_price * l.quantity for l in cart.items))
        assert cart.total_price == pytest.approx(33.5)
        assert cart.total_savings == pytest.approx(6.0)

        await cart.remove_item(1)

        assert cart.total_price == pytest.approx(3.5)
        assert cart.summary().total_items == 1


class TestPersistence:

    async def test_clear_removes_storage_keys(self, cart, storage):
        await cart.add_item(make_product(1, stock=2))
        await cart.snapshot_for_checkout()

        await cart.clear()

        assert cart.cart_items == []
        assert not await storage.exists(CART_KEY)
        assert not await storage.exists(CHECKOUT_KEY)

    async def test_reload_reproduces_lines(self, cart, session):
        await cart.add_item(make_product(1, stock=5, price=4.0))
        await cart.add_item(make_product(2, stock=1, price=9.0, regular_price=11.0))
        await cart.increment(1)

        reloaded = await CartService.create(SessionContext(session.storage, settings=session.settings))

        assert [l.model_dump() for l in reloaded.items] == [l.model_dump() for l in cart.items]

    async def test_corrupt_storage_starts_empty(self, storage, session):
        await storage.set(CART_KEY, "{no es json")

        cart = await CartService.create(session)

        assert cart.is_empty

    async def test_wrong_shape_starts_empty(self, storage, session):
        await storage.set(CART_KEY, json.dumps([{"product_id": "x"}]))

        cart = await CartService.create(session)

        assert cart.is_empty


class TestCheckoutSnapshot:

    async def test_empty_cart_cannot_be_snapshotted(self, cart):
        assert await cart.snapshot_for_checkout() is False
        assert cart.error == "El carrito está vacío"

    async def test_snapshot_is_stored_and_live_cart_untouched(self, cart):
        await cart.add_item(make_product(1, stock=3))

        assert await cart.snapshot_for_checkout() is True
        await cart.increment(1)

        snapshot = await cart.load_snapshot()
        assert snapshot.attempt_id == cart.last_snapshot.attempt_id
        assert snapshot.lines[0].quantity == 1
        assert cart.items[0].quantity == 2

    async def test_each_snapshot_is_a_new_attempt(self, cart):
        await cart.add_item(make_product(1, stock=3))
        await cart.snapshot_for_checkout()
        first = cart.last_snapshot.attempt_id

        await cart.snapshot_for_checkout()

        assert cart.last_snapshot.attempt_id != first

    async def test_validate_reports_lines_over_stock(self, cart):
        await cart.add_item(make_product(1, stock=3, name="Martillo"))
        await cart.set_quantity(1, 3)
        cart.items[0].available_stock = 1

        assert await cart.validate() is False
        assert cart.error == "Productos con stock insuficiente:\nMartillo: solicitado 3, disponible 1"


class TestReconcileStock:

    async def test_quantity_is_clamped(self, cart):
        await cart.add_item(make_product(1, stock=5))
        await cart.set_quantity(1, 4)

        assert await cart.reconcile_stock(1, 2) is True

        assert cart.items[0].quantity == 2
        assert cart.items[0].available_stock == 2

    async def test_line_removed_when_out_of_stock(self, cart):
        await cart.add_item(make_product(1, stock=5))

        await cart.reconcile_stock(1, 0)

        assert cart.is_empty

    async def test_unknown_product(self, cart):
        assert await cart.reconcile_stock(3, 4) is False


class TestPendingCart:

    async def test_pending_cart_is_taken_once(self, cart, storage):
        await cart.add_item(make_product(1, stock=3))
        await cart.save_pending()

        lines = await cart.take_pending()

        assert [l.product_id for l in lines] == [1]
        assert not await storage.exists(PENDING_CART_KEY)
        assert await cart.take_pending() == []

    async def test_teardown_resets_memory_state(self, cart, session):
        await cart.add_item(make_product(1, stock=3))

        await session.teardown()

        assert cart.is_empty
        assert not await session.storage.exists(CART_KEY)
