# backend/tienda/core/config.py
"""
Este archivo contiene la configuración de la aplicación.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional
from pathlib import Path

# Apunta al directorio 'backend/'
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic BaseSettings.
    Variables sensibles desde .env, defaults seguros para el resto.
    """
    # Configuración general del proyecto
    BASE_DIR: Path = BASE_DIR
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Tienda Checkout API"
    PROJECT_VERSION: str = "0.1.0"

    # API remota de la tienda (pedidos, pagos, autenticación)
    REMOTE_API_URL: str = "http://localhost:3000/api"
    REQUEST_TIMEOUT: float = 30.0

    # Almacenamiento durable del carrito y la sesión: "memory" o "redis"
    STORAGE_BACKEND: str = "memory"
    STORAGE_NAMESPACE: str = "tienda"
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # Pagos
    PAYMENT_POLL_INTERVAL_MS: int = 10000
    # Endpoint para generar el enlace de pago: "payment" o "payment-preference"
    PAYMENT_LINK_ENDPOINT: str = "payment"

    # Navegación
    LOGIN_PATH: str = "/auth/login"
    ORDERS_PATH: str = "/orders"
    PUBLIC_PATHS: List[str] = ["/", "/auth/login", "/auth/register", "/auth/employee-login"]

    # Logging - Defaults seguros
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def REDIS_URL(self) -> str:
        """URL de conexión a Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

# Instancia global de la configuración
settings = Settings()
