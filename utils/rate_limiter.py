"""
Límite de pedidos para la API del motor de reservas.

Un único límite por IP (RATE_LIMIT_DEFAULT) aplicado por SlowAPIMiddleware a
todas las rutas. Con varios workers REDIS_URL debe apuntar a un Redis
compartido; memory:// cuenta por proceso.
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from config import RATE_LIMIT_DEFAULT, REDIS_URL

# Límite por IP del cliente
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[RATE_LIMIT_DEFAULT],
    storage_uri=REDIS_URL,
    strategy="fixed-window"
)


def setup_rate_limiting(app):
    """Registra el limiter, su handler de 429 y el middleware en la app."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    return limiter
