# backend/tienda/services/payment_service.py
"""
Servicio de Pagos.

Pide al backend el enlace de pago de una orden (checkout alojado por el
procesador), consulta el estado del pago y lo reconcilia en las órdenes
locales, y mantiene como mucho una consulta periódica activa.

Las consultas periódicas son secuenciales: la siguiente espera empieza
cuando la petición anterior ha terminado, así que una respuesta lenta nunca
provoca peticiones solapadas.
"""
import asyncio
import logging
from typing import Optional

from tienda.core.errors import TiendaError
from tienda.crud import order_crud
from tienda.schemas.order_schema import PaymentPreference, PaymentSession, PaymentStatusData, TERMINAL_PAYMENT_STATUSES
from tienda.schemas.response_schema import OperationResult
from tienda.services.base import RemoteStateMixin
from tienda.services.order_service import OrderService

logger = logging.getLogger(__name__)


class PaymentService(RemoteStateMixin):
    """
    Coordina el enlace de pago y el seguimiento asíncrono de su estado.
    """

    def __init__(self, orders: OrderService, default_interval_ms: Optional[int] = None,
                 link_endpoint: Optional[str] = None):
        self.orders = orders
        self.client = orders.client
        settings = self.client.session.settings
        self.default_interval_ms = default_interval_ms or settings.PAYMENT_POLL_INTERVAL_MS
        self.link_endpoint = link_endpoint or settings.PAYMENT_LINK_ENDPOINT
        self.payment_loading = False
        self.payment_session: Optional[PaymentSession] = None
        self.payment_status: Optional[PaymentStatusData] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._polled_order_id: Optional[int] = None
        self._init_state()

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def poll_task(self) -> Optional[asyncio.Task]:
        return self._poll_task

    # ========================================
    # ENLACE DE PAGO
    # ========================================

    async def generate_payment_link(self, order_id: int) -> OperationResult:
        """
        Solicita el enlace de pago. Con éxito expone `init_point` y
        `preference_id` y marca la orden local con payment_status "pending".
        No reintenta: quien llama decide.
        """
        self.payment_loading = True
        try:
            if self.link_endpoint == "payment-preference":
                result = await order_crud.create_payment_preference(self.client, order_id)
            else:
                result = await order_crud.generate_payment_link(self.client, order_id)

            preference: PaymentPreference = result.data
            self.payment_session = PaymentSession(
                order_id=order_id,
                preference_id=preference.preference_id,
                init_point=preference.init_point,
            )
            for order in self.orders.matching(order_id):
                order.payment_status = "pending"
                order.optimistic = True
            logger.info(f"Enlace de pago generado para la orden {order_id}")
            return self._succeed(result, preference)
        except TiendaError as e:
            return self._fail(e)
        finally:
            self.payment_loading = False

    # ========================================
    # ESTADO DEL PAGO
    # ========================================

    async def check_payment_status(self, order_id: int) -> OperationResult:
        """Consulta única; sobrescribe payment_status y status con los valores del servidor."""
        try:
            result = await order_crud.get_payment_status(self.client, order_id)
        except TiendaError as e:
            logger.error(f"Error consultando el estado de pago de la orden {order_id}: {e.message}")
            return self._fail(e)

        status: PaymentStatusData = result.data
        self.payment_status = status
        for order in self.orders.matching(order_id):
            order.payment_status = status.payment_status
            order.status = status.order_status
            order.optimistic = False
        if self.payment_session is not None and self.payment_session.order_id == order_id:
            self.payment_session.payment_status = status.payment_status
        return self._succeed(result, status)

    def start_polling(self, order_id: int, interval_ms: Optional[int] = None) -> asyncio.Task:
        """
        Inicia la consulta periódica del estado de pago. Cualquier consulta
        anterior (de esta u otra orden) se detiene primero.
        """
        self.stop_polling()
        interval = (interval_ms or self.default_interval_ms) / 1000
        self._polled_order_id = order_id
        self._poll_task = asyncio.get_running_loop().create_task(self._poll(order_id, interval))
        logger.info(f"Consulta de pago iniciada para la orden {order_id} cada {interval}s")
        return self._poll_task

    def stop_polling(self) -> None:
        """Detiene la consulta activa, si la hay. Se puede llamar varias veces y desde dentro de un tick."""
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        if task is not asyncio.current_task() and not task.done():
            task.cancel()
        logger.info(f"Consulta de pago detenida para la orden {self._polled_order_id}")
        self._polled_order_id = None

    def clear_payment_status(self) -> None:
        self.payment_status = None
        self.payment_session = None
        self.stop_polling()

    async def _poll(self, order_id: int, interval: float) -> None:
        me = asyncio.current_task()
        while self._poll_task is me:
            await asyncio.sleep(interval)
            if self._poll_task is not me:
                break
            result = await self.check_payment_status(order_id)
            if result.success and self.payment_status and self.payment_status.payment_status in TERMINAL_PAYMENT_STATUSES:
                logger.info(f"Pago de la orden {order_id} en estado final '{self.payment_status.payment_status}'")
                if self._poll_task is me:
                    self.stop_polling()
