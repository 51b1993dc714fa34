"""
Bitácora de operaciones del motor de reservas.

Una línea por operación: "AREA | Usuario: ... | Accion: ... | Detalle: ...".
Las transiciones y barridos van a INFO (log_event); las operaciones rechazadas
por reglas de negocio o por contención van a WARNING (log_rechazo).
"""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config import LOG_FILE

_LOGGER_NAME = "hotel_reservas"
_LOG_FILE = Path(LOG_FILE)


def _configure_logger() -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    logger.propagate = False

    try:
        handler = RotatingFileHandler(_LOG_FILE, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    except OSError:
        handler = logging.StreamHandler()

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


_logger = _configure_logger()


def _linea(area: str, usuario: str, etiqueta: str, accion: str, detalle: str) -> str:
    message = f"{area.upper()} | Usuario: {usuario} | {etiqueta}: {accion}"
    if detalle:
        message += f" | Detalle: {detalle}"
    return message


def log_event(area: str, usuario: str, accion: str, detalle: str = "") -> None:
    """Registra una operación exitosa del área indicada (reservas, servicios, pagos...)."""
    _logger.info(_linea(area, usuario, "Accion", accion, detalle))


def log_rechazo(area: str, usuario: str, accion: str, detalle: str = "") -> None:
    """Registra una operación rechazada por reglas de negocio o contención."""
    _logger.warning(_linea(area, usuario, "Rechazo", accion, detalle))
