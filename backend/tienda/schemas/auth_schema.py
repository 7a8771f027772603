# backend/tienda/schemas/auth_schema.py
"""
Esquemas de autenticación. Sólo se modela el contrato de entrada/salida;
la emisión de tokens pertenece al backend.
"""

from pydantic import BaseModel
from typing import Any, Dict, Optional

class LoginRequest(BaseModel):
    email: str
    password: str
    user_type: str = "client"

class LoginData(BaseModel):
    """Respuesta del endpoint de login."""
    access_token: str
    expiresIn: Optional[float] = None
    user: Dict[str, Any]
