# backend/tienda/services/checkout_service.py
"""
Flujo de compra visible para la interfaz: carrito -> checkout -> orden -> pago.

Encadena el carrito, el servicio de pedidos y el de pagos, y pide a la
navegación los saltos que el usuario debe ver (login, página de órdenes,
checkout alojado del procesador de pagos).
"""
import logging
from typing import Optional

from tienda.core.errors import LocalValidationError, TiendaError
from tienda.core.session import SessionContext
from tienda.crud import product_crud
from tienda.schemas.cart_schema import ProductInput, ProductStock
from tienda.schemas.response_schema import OperationResult
from tienda.services.cart_service import CartService
from tienda.services.order_service import OrderService
from tienda.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_MESSAGE = "Debes iniciar sesión para continuar con la compra"
EMPTY_CART_MESSAGE = "El carrito está vacío"


class CheckoutService:
    """
    Orquestación de la compra para una sesión.
    """

    def __init__(self, session: SessionContext, cart: CartService, orders: OrderService, payments: PaymentService):
        self.session = session
        self.cart = cart
        self.orders = orders
        self.payments = payments

    def _local_failure(self, message: str) -> OperationResult:
        logger.warning(f"Checkout rechazado: {message}")
        error = LocalValidationError(message)
        return OperationResult(success=False, message=message, status=error.status, kind=error.kind)

    async def proceed_to_checkout(self) -> OperationResult:
        """
        Sin sesión de cliente, guarda el carrito como pendiente y pide el login.
        Con sesión, valida el carrito, toma la copia de checkout y navega a órdenes.
        """
        navigator = self.session.navigator
        if not self.session.is_authenticated or self.session.user_type != "client":
            await self.cart.save_pending()
            navigator.navigate(self.session.settings.LOGIN_PATH)
            return self._local_failure(LOGIN_REQUIRED_MESSAGE)

        if not await self.cart.validate():
            return self._local_failure(self.cart.error)
        if self.cart.is_empty:
            return self._local_failure("Agrega productos al carrito antes de proceder al checkout")
        if not await self.cart.snapshot_for_checkout():
            return self._local_failure(self.cart.error or "No se pudo preparar los datos para checkout")

        navigator.navigate(self.session.settings.ORDERS_PATH)
        snapshot = self.cart.last_snapshot
        return OperationResult(
            success=True,
            message="Completa tu orden seleccionando la dirección de entrega",
            data={"attempt_id": snapshot.attempt_id, "items": len(snapshot.lines)},
        )

    async def create_order_from_cart(self, delivery_address_id: Optional[int],
                                     observations: Optional[str] = None) -> OperationResult:
        """
        Crea la orden con las líneas de la copia de checkout (o del carrito vivo
        si no hay copia). El `attempt_id` de la copia viaja como clave de
        idempotencia, así que repetir el mismo intento no duplica la orden.
        """
        snapshot = await self.cart.load_snapshot()
        lines = snapshot.lines if snapshot and snapshot.lines else self.cart.cart_items
        if not lines:
            return self._local_failure(EMPTY_CART_MESSAGE)

        result = await self.orders.create_order(
            delivery_address_id,
            [{"product_id": line.product_id, "quantity": line.quantity} for line in lines],
            observations=observations,
            idempotency_key=snapshot.attempt_id if snapshot else None,
        )
        if result.success:
            result.data = {"order": result.data, "order_id": result.data.id}
        return result

    async def generate_payment_for_order(self, order_id: int) -> OperationResult:
        result = await self.payments.generate_payment_link(order_id)
        if not result.success:
            return result

        payment_url = result.data.init_point
        if payment_url:
            self.session.navigator.navigate(payment_url)
        return OperationResult(
            success=True,
            message="Redirigiendo a la plataforma de pago...",
            data={"payment_url": payment_url, "preference_id": result.data.preference_id},
            status=result.status,
        )

    async def create_order_and_pay(self, delivery_address_id: Optional[int],
                                   observations: Optional[str] = None) -> OperationResult:
        order_result = await self.create_order_from_cart(delivery_address_id, observations)
        if not order_result.success:
            return order_result

        order_id = order_result.data["order_id"]
        payment_result = await self.generate_payment_for_order(order_id)
        data = dict(order_result.data)
        if payment_result.success:
            data.update(payment_result.data)
        return OperationResult(
            success=payment_result.success,
            message=payment_result.message,
            data=data,
            status=payment_result.status,
            validation_errors=payment_result.validation_errors,
            kind=payment_result.kind,
        )

    async def restore_pending_cart(self) -> int:
        """
        Reconstruye el carrito guardado antes del login. Las líneas nuevas
        pasan por `add_item` y todas terminan con la cantidad guardada,
        acotada por el stock. Una línea que ya está en el carrito vivo no se
        vuelve a sumar. Devuelve cuántas líneas se restauraron.
        """
        restored = 0
        for line in await self.cart.take_pending():
            current = self._cart_line(line.product_id)
            if current is None:
                if not await self.cart.add_item(self._product_from_line(line)):
                    continue
                current = self._cart_line(line.product_id)
            quantity = min(line.quantity, current.available_stock)
            if quantity != current.quantity:
                await self.cart.set_quantity(line.product_id, quantity)
            restored += 1

        if restored:
            logger.info(f"Carrito pendiente restaurado con {restored} líneas")
        return restored

    def _cart_line(self, product_id: int):
        return next((item for item in self.cart.items if item.product_id == product_id), None)

    @staticmethod
    def _product_from_line(line) -> ProductInput:
        return ProductInput(
            id=line.product_id,
            name=line.name,
            code=line.code,
            brand=line.brand,
            image=line.image,
            stock=ProductStock(
                quantity=line.available_stock,
                sale_price=line.unit_price,
                regular_price=line.original_unit_price,
            ),
        )

    async def refresh_stock(self, product_id: int) -> OperationResult:
        """Consulta el stock actual de un producto y lo reconcilia con el carrito."""
        try:
            result = await product_crud.get_product(self.orders.client, product_id)
        except TiendaError as e:
            return OperationResult(success=False, message=e.message, status=e.status,
                                   validation_errors=e.validation_errors, kind=e.kind)

        product: ProductInput = result.data
        if not await self.cart.reconcile_stock(product_id, product.stock.quantity):
            error = LocalValidationError(self.cart.error or "No se pudo actualizar el stock")
            return OperationResult(success=False, message=error.message, data=self.cart.summary(),
                                   status=error.status, kind=error.kind)
        return OperationResult(success=True, message=result.message, data=self.cart.summary(), status=result.status)
