"""
Propiedades bajo concurrencia: sin doble reserva, cupo nunca excedido,
transiciones serializadas por entidad y contención acotada por timeout.
"""
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta

import pytest

from database.conexion import SessionLocal
from models.reserva import Reserva, ReservaDetalle, EstadoReserva, ESTADOS_QUE_BLOQUEAN
from models.servicios import EstadoServicioContratado
from services.checkin_checkout_service import CheckInCheckOutService
from services.cupos_service import CuposService
from services.disponibilidad_service import DisponibilidadService
from services.errors import (
    ReservaEngineError, RoomUnavailableError, CapacityExceededError, ConflictError,
    InvalidTransitionError,
)
from services.reserva_service import ReservaService, LineaReserva
from services.servicio_contratado_service import ServicioContratadoService
from utils import locks
from utils.locks import registro_bloqueos, clave_habitacion


LUNES = date(2030, 1, 7)


def _en_paralelo(funcion, argumentos, hilos=8):
    """Ejecuta funcion(session, *args) en hilos, cada uno con su sesión; devuelve (ok, errores)."""
    barrera = threading.Barrier(min(hilos, len(argumentos)))

    def tarea(args):
        session = SessionLocal()
        try:
            barrera.wait(timeout=10)
            return funcion(session, *args).id, None
        except ReservaEngineError as exc:
            return None, exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=hilos) as pool:
        resultados = list(pool.map(tarea, argumentos))
    exitos = [r for r, e in resultados if r is not None]
    errores = [e for r, e in resultados if e is not None]
    return exitos, errores


def test_misma_habitacion_en_paralelo_un_solo_ganador(habitaciones, cliente):
    linea = LineaReserva(habitaciones["101"], datetime(2030, 4, 1), datetime(2030, 4, 5))

    exitos, errores = _en_paralelo(
        lambda s, _: ReservaService.crear(s, cliente, [linea]),
        [(i,) for i in range(8)],
    )

    assert len(exitos) == 1
    assert len(errores) == 7
    assert all(isinstance(e, RoomUnavailableError) for e in errores)


def test_intervalos_aleatorios_sin_superposicion(db, habitaciones, cliente):
    generador = random.Random(20300101)
    base = datetime(2030, 6, 1)
    pedidos = []
    for _ in range(24):
        habitacion_id = generador.choice(list(habitaciones.values()))
        inicio = base + timedelta(days=generador.randint(0, 20))
        fin = inicio + timedelta(days=generador.randint(1, 5))
        pedidos.append((LineaReserva(habitacion_id, inicio, fin),))

    exitos, errores = _en_paralelo(
        lambda s, linea: ReservaService.crear(s, cliente, [linea]),
        pedidos,
    )
    assert len(exitos) + len(errores) == len(pedidos)
    assert all(isinstance(e, RoomUnavailableError) for e in errores)

    detalles = (
        db.query(ReservaDetalle)
        .join(Reserva, Reserva.id == ReservaDetalle.reserva_id)
        .filter(ReservaDetalle.activo.is_(True), Reserva.estado.in_(ESTADOS_QUE_BLOQUEAN))
        .all()
    )
    assert len(detalles) == len(exitos)
    for i, a in enumerate(detalles):
        for b in detalles[i + 1:]:
            if a.habitacion_id == b.habitacion_id:
                assert not (a.fecha_inicio < b.fecha_fin and b.fecha_inicio < a.fecha_fin)


def test_confirmaciones_en_paralelo(habitaciones, cliente):
    """Dos pendientes superpuestas forzadas: como mucho una llega a confirmada."""
    session = SessionLocal()
    try:
        primera = ReservaService.crear(session, cliente, [
            LineaReserva(habitaciones["101"], datetime(2030, 7, 1), datetime(2030, 7, 3)),
        ])
        segunda = ReservaService.crear(session, cliente, [
            LineaReserva(habitaciones["102"], datetime(2030, 7, 1), datetime(2030, 7, 3)),
        ])
        # Mover la segunda a la 101 por fuera del motor
        session.query(ReservaDetalle).filter(ReservaDetalle.reserva_id == segunda.id).update(
            {"habitacion_id": habitaciones["101"]}
        )
        session.commit()
        ids = [primera.id, segunda.id]
    finally:
        session.close()

    # Ambas pendientes se bloquean mutuamente: ninguna confirma
    exitos, errores = _en_paralelo(lambda s, rid: ReservaService.confirmar(s, rid), [(rid,) for rid in ids])
    assert exitos == []
    assert len(errores) == 2


def test_cupo_en_paralelo_nunca_se_excede(db, spa, cliente):
    exitos, errores = _en_paralelo(
        lambda s, _: ServicioContratadoService.contratar(
            s, spa["servicio_id"], cliente, 1, spa["disponibilidad_id"], LUNES
        ),
        [(i,) for i in range(10)],
        hilos=10,
    )

    assert len(exitos) == 4
    assert len(errores) == 6
    assert all(isinstance(e, CapacityExceededError) for e in errores)
    assert CuposService.cupos_restantes(db, spa["servicio_id"], spa["disponibilidad_id"], LUNES) == 0


def test_timeout_de_bloqueo_es_conflicto(db, habitaciones, cliente, monkeypatch):
    monkeypatch.setattr(locks, "LOCK_TIMEOUT_SECONDS", 0.1)
    linea = LineaReserva(habitaciones["101"], datetime(2030, 8, 1), datetime(2030, 8, 2))

    with registro_bloqueos.retener([clave_habitacion(habitaciones["101"])], timeout=1):
        with pytest.raises(ConflictError):
            ReservaService.crear(db, cliente, [linea])

    # Liberado el bloqueo, la misma operación funciona
    assert ReservaService.crear(db, cliente, [linea]).id is not None


def _historial_es_camino_valido(historial):
    anterior = None
    for fila in historial:
        if fila.estado_anterior != anterior:
            return False
        anterior = fila.estado_nuevo
    return True


def _reserva_pendiente(habitaciones, cliente, inicio, fin, confirmar=False):
    session = SessionLocal()
    try:
        reserva = ReservaService.crear(session, cliente, [
            LineaReserva(habitaciones["101"], inicio, fin),
            LineaReserva(habitaciones["102"], inicio, fin),
        ])
        if confirmar:
            ReservaService.confirmar(session, reserva.id)
        return reserva.id
    finally:
        session.close()


def test_confirmar_y_cancelar_en_paralelo_dejan_historial_valido(db, habitaciones, cliente):
    rid = _reserva_pendiente(habitaciones, cliente, datetime(2030, 9, 1), datetime(2030, 9, 4))

    exitos, errores = _en_paralelo(
        lambda s, accion: getattr(ReservaService, accion)(s, rid),
        [("confirmar",), ("cancelar",)],
    )
    assert all(isinstance(e, InvalidTransitionError) for e in errores)

    reserva = ReservaService.obtener(db, rid)
    historial = ReservaService.historial(db, rid)
    assert _historial_es_camino_valido(historial)
    assert [h.estado_anterior for h in historial].count("pendiente") == 1
    assert historial[-1].estado_nuevo == reserva.estado.value

    activos = [d.activo for d in ReservaService.detalles(db, rid, incluir_inactivos=True)]
    if reserva.estado == EstadoReserva.CANCELADA:
        assert not any(activos)
    else:
        assert reserva.estado == EstadoReserva.CONFIRMADA
        assert all(activos)
        assert len(exitos) == 1


def test_cancelacion_durante_confirmacion_no_pisa_el_estado(db, habitaciones, cliente, monkeypatch):
    rid = _reserva_pendiente(habitaciones, cliente, datetime(2030, 10, 1), datetime(2030, 10, 3))
    monkeypatch.setattr(locks, "LOCK_TIMEOUT_SECONDS", 0.2)

    verificar_original = DisponibilidadService.verificar_habitacion
    errores_cancelacion = []

    def cancelar_en_otra_sesion():
        session = SessionLocal()
        try:
            ReservaService.cancelar(session, rid, usuario="recepcion")
        except ReservaEngineError as exc:
            errores_cancelacion.append(exc)
        finally:
            session.close()

    def verificar_con_cancelacion_concurrente(*args, **kwargs):
        if not errores_cancelacion:
            hilo = threading.Thread(target=cancelar_en_otra_sesion)
            hilo.start()
            hilo.join()
        return verificar_original(*args, **kwargs)

    monkeypatch.setattr(DisponibilidadService, "verificar_habitacion", verificar_con_cancelacion_concurrente)

    ReservaService.confirmar(db, rid)

    assert len(errores_cancelacion) == 1
    assert isinstance(errores_cancelacion[0], ConflictError)

    db.expire_all()
    assert ReservaService.obtener(db, rid).estado == EstadoReserva.CONFIRMADA
    assert len(ReservaService.detalles(db, rid)) == 2
    assert [(h.estado_anterior, h.estado_nuevo) for h in ReservaService.historial(db, rid)] == [
        (None, "pendiente"),
        ("pendiente", "confirmada"),
    ]


def test_check_in_en_paralelo_un_solo_ganador(db, habitaciones, cliente):
    rid = _reserva_pendiente(habitaciones, cliente, datetime(2030, 11, 1), datetime(2030, 11, 3), confirmar=True)

    exitos, errores = _en_paralelo(
        lambda s, _: ReservaService.check_in(s, rid),
        [(i,) for i in range(4)],
        hilos=4,
    )

    assert len(exitos) == 1
    assert len(errores) == 3
    assert all(isinstance(e, InvalidTransitionError) for e in errores)
    assert len(CheckInCheckOutService.listar_por_reserva(db, rid)) == 2
    assert CheckInCheckOutService.pendientes(db, rid) == 2


def test_confirmar_contrato_en_paralelo_un_solo_ganador(db, spa, cliente):
    contrato_id = ServicioContratadoService.contratar(
        db, spa["servicio_id"], cliente, 1, spa["disponibilidad_id"], LUNES
    ).id

    exitos, errores = _en_paralelo(
        lambda s, _: ServicioContratadoService.confirmar(s, contrato_id),
        [(i,) for i in range(4)],
        hilos=4,
    )

    assert exitos == [contrato_id]
    assert len(errores) == 3
    assert all(isinstance(e, InvalidTransitionError) for e in errores)


def test_contratar_mientras_se_cancela_la_reserva(db, habitaciones, cliente, spa):
    rid = _reserva_pendiente(habitaciones, cliente, datetime(2030, 1, 6, 14), datetime(2030, 1, 9, 10), confirmar=True)

    def operar(session, accion):
        if accion == "cancelar":
            return ReservaService.cancelar(session, rid)
        return ServicioContratadoService.contratar(
            session, spa["servicio_id"], cliente, 1, spa["disponibilidad_id"], LUNES, reserva_id=rid
        )

    _en_paralelo(operar, [("cancelar",), ("contratar",)])

    db.expire_all()
    assert ReservaService.obtener(db, rid).estado == EstadoReserva.CANCELADA
    assert all(
        c.estado == EstadoServicioContratado.CANCELADO
        for c in ServicioContratadoService.listar_por_reserva(db, rid)
    )
