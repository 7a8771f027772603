# backend/tienda/services/order_service.py
"""
Servicio de Pedidos.

Convierte un carrito validado en una orden remota, mantiene la lista de
órdenes del cliente y la orden actual, y expone la cancelación. El estado
de una orden sólo avanza con respuestas autoritativas del servicio remoto;
la única mutación local es la marca optimista de `cancelado` tras una
cancelación confirmada.
"""
import logging
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from tienda.core.errors import LocalValidationError, TiendaError
from tienda.crud import order_crud
from tienda.crud.http_client import ApiClient
from tienda.schemas.order_schema import Order, OrderCreate, OrderLine, OrderStatus
from tienda.schemas.response_schema import OperationResult
from tienda.services.base import RemoteStateMixin
from tienda.services.cart_service import CartService
from tienda.services.order_status import can_cancel_order

logger = logging.getLogger(__name__)


class OrderService(RemoteStateMixin):
    """
    Orquesta la creación, consulta y cancelación de órdenes.
    """

    def __init__(self, client: ApiClient, cart: CartService):
        self.client = client
        self.cart = cart
        self.orders: List[Order] = []
        self.current_order: Optional[Order] = None
        self._creating = False
        self._init_state()

    # ========================================
    # SELECTORES
    # ========================================

    def get_order(self, order_id: int) -> Optional[Order]:
        return next((order for order in self.orders if order.id == order_id), None)

    @property
    def has_orders(self) -> bool:
        return len(self.orders) > 0

    @property
    def pending_orders(self) -> List[Order]:
        return [o for o in self.orders if o.status in (OrderStatus.PENDIENTE_PAGO, OrderStatus.PAGO_FALLIDO)]

    @property
    def active_orders(self) -> List[Order]:
        return [o for o in self.orders if o.status in (OrderStatus.CONFIRMADO, OrderStatus.PROCESANDO, OrderStatus.ENVIADO)]

    @property
    def completed_orders(self) -> List[Order]:
        return [o for o in self.orders if o.status == OrderStatus.ENTREGADO]

    def matching(self, order_id: int) -> Iterable[Order]:
        """La entrada de la lista y la orden actual que corresponden a `order_id`."""
        entry = self.get_order(order_id)
        if entry is not None:
            yield entry
        if self.current_order is not None and self.current_order.id == order_id and self.current_order is not entry:
            yield self.current_order

    # ========================================
    # OPERACIONES
    # ========================================

    async def create_order(self, delivery_address_id: Optional[int], lines: Iterable[Mapping[str, Any]],
                           observations: Optional[str] = None, idempotency_key: Optional[str] = None) -> OperationResult:
        """
        Crea una orden a partir de líneas {product_id, quantity}.

        Las precondiciones se verifican localmente y no se hace ninguna llamada
        si fallan. Con éxito, la orden pasa a ser la actual y se vacía el carrito.
        """
        self.reset_state()
        try:
            if self._creating:
                raise LocalValidationError("Ya hay una orden en proceso de creación")
            payload = self._build_payload(delivery_address_id, lines, observations)

            self._creating = True
            try:
                result = await order_crud.create_order(self.client, payload, idempotency_key)
            finally:
                self._creating = False

            new_order: Order = result.data
            self.orders.insert(0, new_order)
            self.current_order = new_order
            await self.cart.clear()
            logger.info(f"Orden {new_order.id} creada con {len(payload.products)} productos")
            return self._succeed(result, new_order)
        except TiendaError as e:
            return self._fail(e)
        finally:
            self.loading = False

    async def cancel_order(self, order_id: int) -> OperationResult:
        """Cancela una orden si su estado lo permite; la marca `cancelado` es optimista."""
        self.reset_state()
        try:
            known = next(iter(self.matching(order_id)), None)
            if known is not None and not can_cancel_order(known):
                raise LocalValidationError("La orden no puede ser cancelada en su estado actual")

            result = await order_crud.cancel_order(self.client, order_id)
            for order in self.matching(order_id):
                order.status = OrderStatus.CANCELADO
                order.optimistic = True
            logger.info(f"Orden {order_id} cancelada")
            return self._succeed(result)
        except TiendaError as e:
            return self._fail(e)
        finally:
            self.loading = False

    async def fetch_orders(self) -> OperationResult:
        self.reset_state()
        try:
            result = await order_crud.get_my_orders(self.client)
            self.orders = result.data
            return self._succeed(result, self.orders)
        except TiendaError as e:
            return self._fail(e)
        finally:
            self.loading = False

    async def fetch_order_by_id(self, order_id: int) -> OperationResult:
        self.reset_state()
        try:
            result = await order_crud.get_order_by_id(self.client, order_id)
            self.current_order = result.data
            index = next((i for i, o in enumerate(self.orders) if o.id == order_id), None)
            if index is not None:
                self.orders[index] = self.current_order
            return self._succeed(result, self.current_order)
        except TiendaError as e:
            return self._fail(e)
        finally:
            self.loading = False

    def clear_current_order(self) -> None:
        self.current_order = None

    def reset(self) -> None:
        self.orders = []
        self.current_order = None
        self._init_state()

    # ========================================
    # VALIDACIÓN LOCAL
    # ========================================

    @staticmethod
    def _build_payload(delivery_address_id: Optional[int], lines: Iterable[Mapping[str, Any]],
                       observations: Optional[str]) -> OrderCreate:
        if not delivery_address_id:
            raise LocalValidationError("Dirección de entrega es requerida")

        lines = list(lines or [])
        if not lines:
            raise LocalValidationError("Debe agregar al menos un producto al carrito")

        products = []
        for line in lines:
            if not isinstance(line, Mapping):
                raise LocalValidationError("Productos inválidos en el carrito")
            product_id = line.get("product_id")
            quantity = line.get("quantity")
            if not product_id or isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise LocalValidationError("Productos inválidos en el carrito")
            try:
                products.append(OrderLine(product_id=product_id, quantity=quantity))
            except ValidationError:
                raise LocalValidationError("Productos inválidos en el carrito")

        try:
            return OrderCreate(delivery_address_id=delivery_address_id, products=products, observations=observations)
        except ValidationError as e:
            logger.warning(f"Datos de orden rechazados localmente: {e.errors()}")
            raise LocalValidationError("Datos de la orden inválidos")
