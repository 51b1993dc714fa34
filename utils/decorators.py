"""
Decorators para servicios - Registro de operaciones rechazadas
"""
from functools import wraps
from typing import Callable

from config import USUARIO_SISTEMA
from services.errors import ReservaEngineError
from utils.logging_utils import log_rechazo


def registrar_rechazos(area: str) -> Callable:
    """
    Loguea cada error de negocio que atraviesa la operación y lo re-lanza sin tocarlo.

    Uso:
        @staticmethod
        @registrar_rechazos("reservas")
        def confirmar(db, reserva_id, usuario=USUARIO_SISTEMA):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ReservaEngineError as exc:
                log_rechazo(
                    area,
                    kwargs.get("usuario") or USUARIO_SISTEMA,
                    f"{func.__name__} -> {exc.codigo}",
                    exc.mensaje,
                )
                raise
        return wrapper
    return decorator
