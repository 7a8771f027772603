# backend/tienda/schemas/order_schema.py
"""
Se encarga de definir los esquemas Pydantic para pedidos y pagos.

Cada endpoint remoto tiene un único esquema documentado; un payload que no
lo cumple produce un error de decodificación en lugar de probar formas
alternativas.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import enum

class OrderStatus(str, enum.Enum):
    """Define los posibles estados de una orden."""
    PENDIENTE_PAGO = "pendiente_pago"
    PENDIENTE = "pendiente"
    CONFIRMADO = "confirmado"
    PROCESANDO = "procesando"
    ENVIADO = "enviado"
    ENTREGADO = "entregado"
    PAGO_FALLIDO = "pago_fallido"
    CANCELADO = "cancelado"

TERMINAL_PAYMENT_STATUSES = frozenset({"approved", "rejected", "cancelled"})

class OrderLine(BaseModel):
    """Producto y cantidad dentro de una orden."""
    product_id: int = Field(..., description="ID del producto")
    quantity: int = Field(..., description="Cantidad del producto", gt=0)

class OrderCreate(BaseModel):
    """Payload de creación de una orden."""
    delivery_address_id: int
    products: List[OrderLine] = Field(..., min_length=1)
    observations: Optional[str] = None

class Order(BaseModel):
    """Esquema completo de una orden tal como la devuelve el servicio remoto."""
    id: int
    status: OrderStatus
    delivery_address_id: Optional[int] = None
    products: List[OrderLine] = []
    observations: Optional[str] = None
    payment_status: Optional[str] = None
    total: Optional[float] = None
    # True mientras la entrada lleva un cambio local aún no confirmado por el servidor
    optimistic: bool = False

class PaymentPreference(BaseModel):
    """Datos del procesador de pagos para redirigir al checkout alojado."""
    preference_id: str
    init_point: str

class PaymentStatusData(BaseModel):
    """Estado del pago y de la orden según el servidor."""
    payment_status: str
    order_status: OrderStatus

class PaymentSession(BaseModel):
    """Sesión de pago efímera de una orden."""
    order_id: int
    preference_id: str
    init_point: str
    payment_status: Optional[str] = "pending"

class OrderFromCartRequest(BaseModel):
    delivery_address_id: Optional[int] = None
    observations: Optional[str] = None
    pay: bool = False

class PollingRequest(BaseModel):
    interval_ms: Optional[int] = Field(None, gt=0)
