"""
Ciclo de vida de reservas.

    pendiente -> confirmada -> check_in -> finalizada
    pendiente | confirmada -> cancelada

Las transiciones se resuelven con la tabla MAQUINA_RESERVA; cada transición
exitosa deja una fila en historial_reservas dentro de la misma transacción.
Toda transición toma el bloqueo de la reserva y relee su estado bajo él, así
dos transiciones simultáneas sobre la misma reserva nunca parten del mismo estado.
Crear y confirmar verifican disponibilidad bajo los bloqueos de las
habitaciones involucradas (en orden ascendente de id) y hacen commit antes
de liberarlos.
"""
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence

from sqlalchemy.orm import Session

from config import USUARIO_SISTEMA
from models.habitacion import Habitacion
from models.reserva import Reserva, ReservaDetalle, HistorialReserva, EstadoReserva
from models.checkin_checkout import CheckInCheckOut, EstadoCheckInCheckOut
from models.servicios import ServicioContratado, EstadoServicioContratado
from services.catalogo import CatalogoService
from services.checkin_checkout_service import CheckInCheckOutService
from services.disponibilidad_service import DisponibilidadService, validar_rango
from services.errors import (
    NotFoundError, InvalidQuantityError, RoomUnavailableError,
    InvalidTransitionError, IncompleteCheckoutError,
)
from services.servicio_contratado_service import MAQUINA_SERVICIO_CONTRATADO
from utils.decorators import registrar_rechazos
from utils.locks import transaccion_serializada, bloquear_filas, clave_habitacion, clave_reserva
from utils.logging_utils import log_event
from utils.state_machine import MaquinaEstados
from utils.timezone import utc_now, to_naive_utc


MAQUINA_RESERVA = MaquinaEstados("Reserva", {
    (EstadoReserva.PENDIENTE, "confirmar"): EstadoReserva.CONFIRMADA,
    (EstadoReserva.PENDIENTE, "cancelar"): EstadoReserva.CANCELADA,
    (EstadoReserva.CONFIRMADA, "check_in"): EstadoReserva.CHECK_IN,
    (EstadoReserva.CONFIRMADA, "cancelar"): EstadoReserva.CANCELADA,
    (EstadoReserva.CHECK_IN, "completar"): EstadoReserva.FINALIZADA,
})


class LineaReserva(NamedTuple):
    """Una habitación solicitada para [fecha_inicio, fecha_fin)."""
    habitacion_id: int
    fecha_inicio: datetime
    fecha_fin: datetime
    nota: Optional[str] = None


class ReservaService:

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    @staticmethod
    def _obtener(db: Session, reserva_id: int) -> Reserva:
        reserva = db.query(Reserva).filter(Reserva.id == reserva_id).first()
        if not reserva:
            raise NotFoundError("Reserva", reserva_id)
        return reserva

    @staticmethod
    def _obtener_bloqueada(db: Session, reserva_id: int) -> Reserva:
        """Relee la reserva con su fila bloqueada. Solo dentro de transaccion_serializada."""
        bloquear_filas(db, Reserva, [reserva_id])
        return ReservaService._obtener(db, reserva_id)

    @staticmethod
    def _detalles_activos(db: Session, reserva_id: int) -> List[ReservaDetalle]:
        return (
            db.query(ReservaDetalle)
            .filter(ReservaDetalle.reserva_id == reserva_id, ReservaDetalle.activo.is_(True))
            .order_by(ReservaDetalle.id)
            .all()
        )

    @staticmethod
    def _transicionar(db: Session, reserva: Reserva, accion: str, usuario: str, motivo: str = None):
        anterior, nuevo = MAQUINA_RESERVA.aplicar(reserva, accion)
        reserva.actualizado_por = usuario
        db.add(HistorialReserva(
            reserva_id=reserva.id,
            estado_anterior=anterior.value,
            estado_nuevo=nuevo.value,
            usuario=usuario,
            fecha=utc_now(),
            motivo=motivo,
        ))
        return anterior, nuevo

    @staticmethod
    def _bloquear_habitaciones(db: Session, habitacion_ids: Sequence[int]) -> None:
        encontradas = {h.id for h in bloquear_filas(db, Habitacion, habitacion_ids) if h.activo}
        for habitacion_id in sorted(set(habitacion_ids)):
            if habitacion_id not in encontradas:
                raise NotFoundError("Habitacion", habitacion_id)

    @staticmethod
    def _cerrar_servicios(db: Session, reserva_id: int, al_completar: bool):
        """Al completar: confirmados -> completado, pendientes -> cancelado. Al cancelar: ambos -> cancelado."""
        contratos = (
            db.query(ServicioContratado)
            .filter(
                ServicioContratado.reserva_id == reserva_id,
                ServicioContratado.estado.in_([
                    EstadoServicioContratado.PENDIENTE,
                    EstadoServicioContratado.CONFIRMADO,
                ]),
            )
            .all()
        )
        completados = cancelados = 0
        for contrato in contratos:
            if al_completar and contrato.estado == EstadoServicioContratado.CONFIRMADO:
                MAQUINA_SERVICIO_CONTRATADO.aplicar(contrato, "completar")
                completados += 1
            else:
                MAQUINA_SERVICIO_CONTRATADO.aplicar(contrato, "cancelar")
                cancelados += 1
        return completados, cancelados

    # ------------------------------------------------------------------
    # Operaciones
    # ------------------------------------------------------------------

    @staticmethod
    @registrar_rechazos("reservas")
    def crear(
        db: Session,
        cliente_id: int,
        detalles: Sequence[LineaReserva],
        usuario: str = USUARIO_SISTEMA,
    ) -> Reserva:
        """
        Crea la reserva en estado pendiente con todas sus líneas, o nada.

        Raises:
            InvalidQuantityError: sin líneas
            InvalidRangeError: alguna línea con inicio >= fin
            NotFoundError: cliente o habitación inexistente/inactiva
            RoomUnavailableError: alguna habitación ocupada en su rango
            ConflictError: timeout esperando los bloqueos
        """
        if not detalles:
            raise InvalidQuantityError("La reserva debe incluir al menos una habitación")

        lineas = [
            LineaReserva(
                int(d.habitacion_id),
                to_naive_utc(d.fecha_inicio),
                to_naive_utc(d.fecha_fin),
                d.nota,
            )
            for d in detalles
        ]
        for linea in lineas:
            validar_rango(linea.fecha_inicio, linea.fecha_fin)

        habitacion_ids = [linea.habitacion_id for linea in lineas]

        with transaccion_serializada(db, [clave_habitacion(h) for h in habitacion_ids]):
            CatalogoService.obtener_cliente(db, cliente_id)
            ReservaService._bloquear_habitaciones(db, habitacion_ids)

            for i, linea in enumerate(lineas):
                # Líneas del mismo pedido sobre la misma habitación tampoco pueden superponerse
                for previa in lineas[:i]:
                    if (
                        previa.habitacion_id == linea.habitacion_id
                        and previa.fecha_inicio < linea.fecha_fin
                        and linea.fecha_inicio < previa.fecha_fin
                    ):
                        raise RoomUnavailableError(
                            linea.habitacion_id,
                            "La solicitud incluye rangos superpuestos para la misma habitación",
                        )
                if not DisponibilidadService.verificar_habitacion(
                    db, linea.habitacion_id, linea.fecha_inicio, linea.fecha_fin
                ):
                    raise RoomUnavailableError(
                        linea.habitacion_id,
                        fecha_inicio=linea.fecha_inicio.isoformat(),
                        fecha_fin=linea.fecha_fin.isoformat(),
                    )

            reserva = Reserva(
                cliente_id=cliente_id,
                fecha_reserva=utc_now(),
                fecha_inicio=min(linea.fecha_inicio for linea in lineas),
                fecha_fin=max(linea.fecha_fin for linea in lineas),
                estado=EstadoReserva.PENDIENTE,
                activo=True,
                creado_por=usuario,
                actualizado_por=usuario,
            )
            db.add(reserva)
            db.flush()

            for linea in lineas:
                db.add(ReservaDetalle(
                    reserva_id=reserva.id,
                    habitacion_id=linea.habitacion_id,
                    fecha_inicio=linea.fecha_inicio,
                    fecha_fin=linea.fecha_fin,
                    nota=linea.nota,
                    activo=True,
                ))
            db.add(HistorialReserva(
                reserva_id=reserva.id,
                estado_anterior=None,
                estado_nuevo=EstadoReserva.PENDIENTE.value,
                usuario=usuario,
                fecha=utc_now(),
                motivo="Creación de reserva",
            ))

        db.refresh(reserva)
        log_event(
            "reservas", usuario, "Reserva creada",
            f"reserva_id={reserva.id} cliente_id={cliente_id} habitaciones={sorted(set(habitacion_ids))}",
        )
        return reserva

    @staticmethod
    @registrar_rechazos("reservas")
    def confirmar(db: Session, reserva_id: int, usuario: str = USUARIO_SISTEMA) -> Reserva:
        reserva = ReservaService._obtener(db, reserva_id)
        # Rechazo temprano sin tomar bloqueos; se re-valida adentro
        MAQUINA_RESERVA.siguiente(reserva.estado, "confirmar")

        habitacion_ids = [d.habitacion_id for d in ReservaService._detalles_activos(db, reserva_id)]

        claves = [clave_reserva(reserva_id)] + [clave_habitacion(h) for h in habitacion_ids]
        with transaccion_serializada(db, claves):
            reserva = ReservaService._obtener_bloqueada(db, reserva_id)
            MAQUINA_RESERVA.siguiente(reserva.estado, "confirmar")
            ReservaService._bloquear_habitaciones(db, habitacion_ids)

            for detalle in ReservaService._detalles_activos(db, reserva_id):
                if not DisponibilidadService.verificar_habitacion(
                    db, detalle.habitacion_id, detalle.fecha_inicio, detalle.fecha_fin,
                    reserva_id_excluir=reserva_id,
                ):
                    raise RoomUnavailableError(
                        detalle.habitacion_id,
                        reserva_id=reserva_id,
                        fecha_inicio=detalle.fecha_inicio.isoformat(),
                        fecha_fin=detalle.fecha_fin.isoformat(),
                    )

            ReservaService._transicionar(db, reserva, "confirmar", usuario)

        db.refresh(reserva)
        log_event("reservas", usuario, "Reserva confirmada", f"reserva_id={reserva_id}")
        return reserva

    @staticmethod
    @registrar_rechazos("reservas")
    def check_in(db: Session, reserva_id: int, usuario: str = USUARIO_SISTEMA) -> Reserva:
        """Pasa a check_in y abre un registro de check-in/check-out por cada línea activa."""
        with transaccion_serializada(db, [clave_reserva(reserva_id)]):
            reserva = ReservaService._obtener_bloqueada(db, reserva_id)
            ReservaService._transicionar(db, reserva, "check_in", usuario)

            ahora = utc_now()
            detalles = ReservaService._detalles_activos(db, reserva_id)
            for detalle in detalles:
                db.add(CheckInCheckOut(
                    reserva_detalle_id=detalle.id,
                    fecha_hora_check_in=ahora,
                    estado=EstadoCheckInCheckOut.PENDIENTE,
                ))

        db.refresh(reserva)
        log_event(
            "reservas", usuario, "Check-in realizado",
            f"reserva_id={reserva_id} registros={len(detalles)}",
        )
        return reserva

    @staticmethod
    @registrar_rechazos("reservas")
    def completar(db: Session, reserva_id: int, usuario: str = USUARIO_SISTEMA) -> Reserva:
        """
        Finaliza una reserva en check_in cuyos registros de ocupación están todos realizados.
        Los servicios confirmados de la reserva pasan a completado y los pendientes a cancelado.
        """
        with transaccion_serializada(db, [clave_reserva(reserva_id)]):
            reserva = ReservaService._obtener_bloqueada(db, reserva_id)
            MAQUINA_RESERVA.siguiente(reserva.estado, "completar")

            pendientes = CheckInCheckOutService.pendientes(db, reserva_id)
            if pendientes:
                raise IncompleteCheckoutError(
                    f"La reserva {reserva_id} tiene {pendientes} check-out pendientes",
                    reserva_id=reserva_id,
                    pendientes=pendientes,
                )

            ReservaService._transicionar(db, reserva, "completar", usuario)
            completados, cancelados = ReservaService._cerrar_servicios(db, reserva_id, al_completar=True)

        db.refresh(reserva)
        log_event(
            "reservas", usuario, "Reserva finalizada",
            f"reserva_id={reserva_id} servicios_completados={completados} servicios_cancelados={cancelados}",
        )
        return reserva

    @staticmethod
    @registrar_rechazos("reservas")
    def cancelar(
        db: Session, reserva_id: int, usuario: str = USUARIO_SISTEMA, motivo: Optional[str] = None
    ) -> Reserva:
        """Cancela desde pendiente o confirmada, libera las habitaciones y cancela sus servicios."""
        with transaccion_serializada(db, [clave_reserva(reserva_id)]):
            reserva = ReservaService._obtener_bloqueada(db, reserva_id)
            ReservaService._transicionar(db, reserva, "cancelar", usuario, motivo)

            for detalle in ReservaService._detalles_activos(db, reserva_id):
                detalle.activo = False
            _, cancelados = ReservaService._cerrar_servicios(db, reserva_id, al_completar=False)

        db.refresh(reserva)
        log_event(
            "reservas", usuario, "Reserva cancelada",
            f"reserva_id={reserva_id} servicios_cancelados={cancelados} motivo={motivo or '-'}",
        )
        return reserva

    @staticmethod
    @registrar_rechazos("reservas")
    def desactivar(db: Session, reserva_id: int, usuario: str = USUARIO_SISTEMA) -> Reserva:
        """Baja lógica; solo reservas canceladas."""
        with transaccion_serializada(db, [clave_reserva(reserva_id)]):
            reserva = ReservaService._obtener_bloqueada(db, reserva_id)
            if reserva.estado != EstadoReserva.CANCELADA:
                raise InvalidTransitionError("Reserva", reserva.estado, "desactivar")
            reserva.activo = False
            reserva.actualizado_por = usuario

        db.refresh(reserva)
        log_event("reservas", usuario, "Reserva desactivada", f"reserva_id={reserva_id}")
        return reserva

    @staticmethod
    @registrar_rechazos("reservas")
    def activar(db: Session, reserva_id: int, usuario: str = USUARIO_SISTEMA) -> Reserva:
        with transaccion_serializada(db, [clave_reserva(reserva_id)]):
            reserva = ReservaService._obtener_bloqueada(db, reserva_id)
            reserva.activo = True
            reserva.actualizado_por = usuario

        db.refresh(reserva)
        log_event("reservas", usuario, "Reserva reactivada", f"reserva_id={reserva_id}")
        return reserva

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    @staticmethod
    def obtener(db: Session, reserva_id: int) -> Reserva:
        return ReservaService._obtener(db, reserva_id)

    @staticmethod
    def detalles(db: Session, reserva_id: int, incluir_inactivos: bool = False) -> List[ReservaDetalle]:
        ReservaService._obtener(db, reserva_id)
        query = db.query(ReservaDetalle).filter(ReservaDetalle.reserva_id == reserva_id)
        if not incluir_inactivos:
            query = query.filter(ReservaDetalle.activo.is_(True))
        return query.order_by(ReservaDetalle.id).all()

    @staticmethod
    def historial(db: Session, reserva_id: int) -> List[HistorialReserva]:
        ReservaService._obtener(db, reserva_id)
        return (
            db.query(HistorialReserva)
            .filter(HistorialReserva.reserva_id == reserva_id)
            .order_by(HistorialReserva.id.asc())
            .all()
        )
