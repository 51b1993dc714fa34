"""
Configuración del motor de reservas y disponibilidad
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Base de datos
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "hotel")

# Si DATABASE_URL está definida tiene prioridad sobre las variables sueltas
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# Concurrencia: espera máxima por un bloqueo de habitación o cupo de servicio
LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS", "5"))
# Sugerencia al cliente cuando hay contención (header Retry-After)
CONFLICT_RETRY_AFTER_SECONDS = int(os.getenv("CONFLICT_RETRY_AFTER_SECONDS", "1"))

# Zona horaria del hotel
HOTEL_TIMEZONE = os.getenv("HOTEL_TIMEZONE", "America/Argentina/Buenos_Aires")

# Logging
LOG_FILE = os.getenv("LOG_FILE", "hotel_logs.txt")

# API
RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
REDIS_URL = os.getenv("REDIS_URL", "memory://")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

# Usuario registrado en historial/auditoría cuando la llamada no indica uno
USUARIO_SISTEMA = "sistema"
