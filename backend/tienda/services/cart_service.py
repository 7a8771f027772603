# backend/tienda/services/cart_service.py
"""
Servicio de Carrito de Compras para la aplicación.

Este servicio es el dueño del carrito previo al pedido: añade, quita y ajusta
líneas respetando el stock capturado de cada producto, persiste el carrito
en el almacenamiento durable después de cada cambio y toma la copia
inmutable del carrito al iniciar el checkout.

Invariante: tras cualquier operación, cada línea cumple
0 < quantity <= available_stock. Los estados que la violan se corrigen en
el momento (recortando la cantidad o quitando la línea).
"""
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from redis.exceptions import RedisError

from tienda.core.session import CART_KEY, CHECKOUT_KEY, PENDING_CART_KEY, SessionContext
from tienda.db.storage import load_json, save_json
from tienda.schemas.cart_schema import Cart, CartLine, CheckoutSnapshot, ProductInput

logger = logging.getLogger(__name__)


class CartService:
    """
    Servicio para gestionar el carrito de compras de una sesión.

    Las operaciones que pueden fallar devuelven un booleano y dejan el motivo
    en `error`; nunca lanzan excepciones hacia quien las llama.
    """

    def __init__(self, session: SessionContext):
        self.session = session
        self.storage = session.storage
        self.items: List[CartLine] = []
        self.loading = False
        self.error: Optional[str] = None
        self.last_snapshot: Optional[CheckoutSnapshot] = None
        session.on_teardown(self.reset)

    @classmethod
    async def create(cls, session: SessionContext) -> "CartService":
        """Construye el servicio restaurando el carrito guardado."""
        service = cls(session)
        await service.load()
        return service

    # ========================================
    # VALORES DERIVADOS
    # ========================================

    @property
    def cart_items(self) -> List[CartLine]:
        return list(self.items)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return sum(item.unit_price * item.quantity for item in self.items)

    @property
    def total_savings(self) -> float:
        return sum(item.savings for item in self.items)

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0

    def summary(self) -> Cart:
        return Cart(
            items=self.cart_items,
            total_items=self.total_items,
            total_price=self.total_price,
            total_savings=self.total_savings,
            is_empty=self.is_empty,
        )

    # ========================================
    # OPERACIONES DEL CARRITO
    # ========================================

    async def add_item(self, product: Union[ProductInput, Dict[str, Any]]) -> bool:
        """
        Añade una unidad de un producto al carrito.
        Si el producto ya existe, incrementa su cantidad sin superar el stock.
        """
        if not isinstance(product, ProductInput):
            try:
                product = ProductInput.model_validate(product)
            except ValidationError:
                return self._fail("Producto inválido")

        stock = product.stock.quantity
        existing = self._find(product.id)

        if existing:
            if existing.quantity + 1 > stock:
                return self._fail(f"Stock insuficiente. Disponible: {stock}")
            existing.quantity += 1
            existing.available_stock = stock
        else:
            if stock < 1:
                return self._fail("Producto sin stock disponible")
            self.items.append(CartLine(
                product_id=product.id,
                name=product.name,
                code=product.code,
                brand=product.brand,
                unit_price=product.stock.sale_price or 0,
                original_unit_price=product.stock.regular_price,
                quantity=1,
                available_stock=stock,
                image=product.image,
            ))

        await self._save()
        self.error = None
        logger.debug(f"Producto {product.id} añadido al carrito")
        return True

    async def remove_item(self, product_id: int) -> None:
        """Elimina una línea del carrito. No hace nada si el producto no está."""
        line = self._find(product_id)
        if line is None:
            return
        self.items.remove(line)
        await self._save()

    async def set_quantity(self, product_id: int, quantity: Any) -> bool:
        """Fija la cantidad de una línea; 0 o menos equivale a eliminarla."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            return self._fail("Cantidad inválida")

        line = self._find(product_id)
        if line is None:
            return self._fail("El producto no está en el carrito")

        if quantity <= 0:
            await self.remove_item(product_id)
            return True
        if quantity > line.available_stock:
            return self._fail(f"Stock insuficiente. Disponible: {line.available_stock}")

        line.quantity = quantity
        await self._save()
        return True

    async def increment(self, product_id: int) -> bool:
        line = self._find(product_id)
        if line is None:
            return self._fail("El producto no está en el carrito")
        if line.quantity >= line.available_stock:
            return self._fail(f"Stock insuficiente. Disponible: {line.available_stock}")
        line.quantity += 1
        await self._save()
        return True

    async def decrement(self, product_id: int) -> bool:
        line = self._find(product_id)
        if line is None:
            return self._fail("El producto no está en el carrito")
        if line.quantity > 1:
            line.quantity -= 1
            await self._save()
        else:
            await self.remove_item(product_id)
        return True

    async def clear(self) -> None:
        """Vacía el carrito y borra las claves del carrito y del checkout."""
        self.items = []
        self.error = None
        self.last_snapshot = None
        try:
            await self.storage.delete(CART_KEY, CHECKOUT_KEY)
        except RedisError:
            logger.error("No se pudo borrar el carrito del almacenamiento", exc_info=True)

    async def validate(self) -> bool:
        """
        Comprueba que ninguna línea pida más unidades que su stock capturado.
        No consulta el stock remoto; eso lo hace `reconcile_stock`.
        """
        self.loading = True
        self.error = None
        try:
            invalid = [item for item in self.items if item.quantity > item.available_stock]
            if invalid:
                errors = [f"{item.name}: solicitado {item.quantity}, disponible {item.available_stock}" for item in invalid]
                return self._fail("Productos con stock insuficiente:\n" + "\n".join(errors))
            return True
        finally:
            self.loading = False

    async def snapshot_for_checkout(self) -> bool:
        """Guarda una copia inmutable del carrito para la pantalla de creación de la orden."""
        if self.is_empty:
            return self._fail("El carrito está vacío")

        snapshot = CheckoutSnapshot(lines=[item.model_copy() for item in self.items])
        try:
            await save_json(self.storage, CHECKOUT_KEY, snapshot.model_dump(mode="json"))
        except RedisError:
            logger.error("No se pudo guardar el checkout en el almacenamiento", exc_info=True)
            return self._fail("No se pudo preparar el checkout")

        self.last_snapshot = snapshot
        logger.info(f"Checkout preparado con {len(snapshot.lines)} líneas (intento {snapshot.attempt_id})")
        return True

    async def load_snapshot(self) -> Optional[CheckoutSnapshot]:
        data = await load_json(self.storage, CHECKOUT_KEY)
        if data is None:
            return None
        try:
            return CheckoutSnapshot.model_validate(data)
        except ValidationError:
            logger.error("Checkout guardado con formato inválido, se descarta")
            return None

    async def reconcile_stock(self, product_id: int, new_stock: int) -> bool:
        """
        Actualiza el stock capturado de una línea tras un refresco externo.
        Si la cantidad supera el nuevo stock se recorta, o se quita la línea
        cuando el stock llega a 0.
        """
        if new_stock < 0:
            return self._fail("Stock inválido")
        line = self._find(product_id)
        if line is None:
            return self._fail("El producto no está en el carrito")

        line.available_stock = new_stock
        if line.quantity > new_stock:
            if new_stock == 0:
                self.items.remove(line)
                logger.info(f"Producto {product_id} sin stock, se quita del carrito")
            else:
                line.quantity = new_stock
                logger.info(f"Cantidad del producto {product_id} recortada a {new_stock}")

        await self._save()
        return True

    def clear_error(self) -> None:
        self.error = None

    def reset(self) -> None:
        """Descarta el estado en memoria (el almacenamiento lo borra el cierre de sesión)."""
        self.items = []
        self.error = None
        self.loading = False
        self.last_snapshot = None

    # ========================================
    # CARRITO PENDIENTE (añadir sin sesión y luego iniciar sesión)
    # ========================================

    async def save_pending(self) -> None:
        await save_json(self.storage, PENDING_CART_KEY, [item.model_dump() for item in self.items])

    async def take_pending(self) -> List[CartLine]:
        """Lee y borra el carrito pendiente."""
        data = await load_json(self.storage, PENDING_CART_KEY)
        await self.storage.delete(PENDING_CART_KEY)
        lines = []
        for raw in data if isinstance(data, list) else []:
            try:
                lines.append(CartLine.model_validate(raw))
            except ValidationError:
                logger.warning(f"Línea de carrito pendiente inválida descartada: {raw}")
        return lines

    # ========================================
    # PERSISTENCIA
    # ========================================

    async def load(self) -> None:
        """Restaura el carrito guardado; un valor ausente o corrupto es un carrito vacío."""
        try:
            data = await load_json(self.storage, CART_KEY)
        except RedisError:
            logger.error("No se pudo leer el carrito del almacenamiento", exc_info=True)
            data = None

        if not isinstance(data, list):
            self.items = []
            return
        try:
            self.items = [CartLine.model_validate(raw) for raw in data]
        except ValidationError:
            logger.error("Carrito guardado con formato inválido, se inicia vacío")
            self.items = []

    async def _save(self) -> None:
        try:
            await save_json(self.storage, CART_KEY, [item.model_dump() for item in self.items])
        except RedisError:
            logger.error("No se pudo guardar el carrito en el almacenamiento", exc_info=True)

    def _find(self, product_id: int) -> Optional[CartLine]:
        return next((item for item in self.items if item.product_id == product_id), None)

    def _fail(self, message: str) -> bool:
        self.error = message
        logger.warning(f"Operación de carrito rechazada: {message}")
        return False
