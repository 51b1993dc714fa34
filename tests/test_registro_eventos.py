"""
Formato de la bitácora: operaciones exitosas en INFO, rechazos en WARNING.
"""
from pathlib import Path

import pytest

from config import LOG_FILE
from services.errors import NotFoundError
from services.reserva_service import ReservaService
from utils.logging_utils import log_event, log_rechazo


def _ultima_linea():
    return Path(LOG_FILE).read_text(encoding="utf-8").splitlines()[-1]


def test_log_event_formato():
    log_event("reservas", "recepcion", "Reserva creada", "reserva_id=7")

    linea = _ultima_linea()
    assert "| INFO |" in linea
    assert linea.endswith("RESERVAS | Usuario: recepcion | Accion: Reserva creada | Detalle: reserva_id=7")


def test_log_rechazo_sin_detalle():
    log_rechazo("pagos", "caja", "completar -> invalid_transition")

    linea = _ultima_linea()
    assert "| WARNING |" in linea
    assert linea.endswith("PAGOS | Usuario: caja | Rechazo: completar -> invalid_transition")


def test_operacion_rechazada_queda_registrada(db):
    with pytest.raises(NotFoundError):
        ReservaService.confirmar(db, 4242, usuario="gerencia")

    linea = _ultima_linea()
    assert "| WARNING |" in linea
    assert "RESERVAS | Usuario: gerencia | Rechazo: confirmar -> not_found" in linea
    assert "Reserva 4242 no encontrado" in linea
