# backend/tienda/schemas/response_schema.py
"""
Esquemas de los resultados que circulan entre la red y los servicios.
"""

from pydantic import BaseModel, Field
from typing import Any, List, Optional

from tienda.core.errors import ErrorKind

class NormalizedResult(BaseModel):
    """Forma canónica de cualquier resultado de una llamada remota."""
    success: bool
    message: str = ""
    data: Any = None
    status: int = 200
    details: Any = None
    validation_errors: List[str] = Field(default_factory=list)
    kind: Optional[ErrorKind] = None

class OperationResult(BaseModel):
    """Resultado devuelto por las operaciones de carrito, pedidos y pagos."""
    success: bool
    message: str = ""
    data: Any = None
    status: int = 200
    validation_errors: List[str] = Field(default_factory=list)
    kind: Optional[ErrorKind] = None
