# backend/tienda/schemas/cart_schema.py
"""
Esquemas Pydantic para la gestión del carrito de la compra.
"""

from datetime import datetime, timezone
from pydantic import BaseModel, Field
from typing import List, Optional
import uuid

class ProductStock(BaseModel):
    """Stock y precios de un producto tal como los entrega el catálogo."""
    quantity: int = 0
    sale_price: float = 0.0
    regular_price: Optional[float] = None

class ProductInput(BaseModel):
    """Producto recibido desde el catálogo para añadirlo al carrito."""
    id: int
    name: str
    code: Optional[str] = None
    brand: Optional[str] = None
    image: Optional[str] = None
    stock: ProductStock = Field(default_factory=ProductStock)

class CartLine(BaseModel):
    """Una línea del carrito con su precio y stock capturados al añadirla."""
    product_id: int
    name: str
    code: Optional[str] = None
    brand: Optional[str] = None
    unit_price: float
    original_unit_price: Optional[float] = None
    quantity: int = Field(..., ge=1)
    available_stock: int = Field(..., ge=0)
    image: Optional[str] = None

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    @property
    def savings(self) -> float:
        if self.original_unit_price is None:
            return 0.0
        return (self.original_unit_price - self.unit_price) * self.quantity

class CheckoutSnapshot(BaseModel):
    """Copia inmutable del carrito tomada al iniciar el checkout."""
    attempt_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    lines: List[CartLine]

    model_config = {"frozen": True}

class Cart(BaseModel):
    """Esquema que representa el estado completo del carrito."""
    items: List[CartLine]
    total_items: int
    total_price: float
    total_savings: float
    is_empty: bool

class QuantityUpdate(BaseModel):
    quantity: int

class StockUpdate(BaseModel):
    stock: int = Field(..., ge=0)
