# backend/tienda/crud/auth_crud.py
"""
Operaciones remotas de autenticación (clientes y personal).
"""

from typing import Any, Dict

from tienda.crud.http_client import ApiClient, expect
from tienda.schemas.auth_schema import LoginData
from tienda.schemas.response_schema import NormalizedResult

def _prefix(user_type: str) -> str:
    return "client/auth" if user_type == "client" else "auth"

async def login(client: ApiClient, credentials: Dict[str, Any], user_type: str = "client") -> NormalizedResult:
    """POST client/auth/login | auth/login -> data: LoginData"""
    result = await client.post(f"{_prefix(user_type)}/login", json=credentials)
    return expect(result, LoginData)

async def logout(client: ApiClient, user_type: str = "client") -> NormalizedResult:
    """POST client/auth/logout | auth/logout"""
    result = await client.post(f"{_prefix(user_type)}/logout")
    return expect(result)
