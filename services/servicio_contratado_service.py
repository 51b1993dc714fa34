"""
Servicios contratados (spa, excursiones, traslados...).

Contratar toma el bloqueo del cupo (servicio, fecha) y la fila del servicio
antes de contar lo ocupado, de modo que la suma de cantidades de un día
nunca supera el cupo_maximo de la plantilla.
"""
from datetime import date, time
from typing import List, Optional

from sqlalchemy.orm import Session

from config import USUARIO_SISTEMA
from models.reserva import Reserva, EstadoReserva
from models.servicios import Servicio, ServicioContratado, EstadoServicioContratado
from services.catalogo import CatalogoService
from services.cupos_service import CuposService
from services.errors import (
    NotFoundError, InvalidQuantityError, InvalidRangeError,
    InvalidTransitionError, CapacityExceededError,
)
from utils.decorators import registrar_rechazos
from utils.locks import transaccion_serializada, bloquear_filas, clave_cupo, clave_reserva, clave_contrato
from utils.logging_utils import log_event
from utils.state_machine import MaquinaEstados
from utils.timezone import utc_now


MAQUINA_SERVICIO_CONTRATADO = MaquinaEstados("ServicioContratado", {
    (EstadoServicioContratado.PENDIENTE, "confirmar"): EstadoServicioContratado.CONFIRMADO,
    (EstadoServicioContratado.PENDIENTE, "cancelar"): EstadoServicioContratado.CANCELADO,
    (EstadoServicioContratado.CONFIRMADO, "completar"): EstadoServicioContratado.COMPLETADO,
    (EstadoServicioContratado.CONFIRMADO, "cancelar"): EstadoServicioContratado.CANCELADO,
})

# Reservas sobre las que se pueden contratar servicios
ESTADOS_RESERVA_CONTRATABLES = (EstadoReserva.CONFIRMADA, EstadoReserva.CHECK_IN)


class ServicioContratadoService:

    @staticmethod
    def _obtener(db: Session, contrato_id: int) -> ServicioContratado:
        contrato = db.query(ServicioContratado).filter(ServicioContratado.id == contrato_id).first()
        if not contrato:
            raise NotFoundError("ServicioContratado", contrato_id)
        return contrato

    @staticmethod
    def _validar_reserva(db: Session, reserva_id: int, fecha: date) -> Reserva:
        bloquear_filas(db, Reserva, [reserva_id])
        reserva = db.query(Reserva).filter(Reserva.id == reserva_id, Reserva.activo.is_(True)).first()
        if not reserva:
            raise NotFoundError("Reserva", reserva_id)
        if reserva.estado not in ESTADOS_RESERVA_CONTRATABLES:
            raise InvalidTransitionError("Reserva", reserva.estado, "contratar_servicio")
        if not (reserva.fecha_inicio.date() <= fecha <= reserva.fecha_fin.date()):
            raise InvalidRangeError(
                f"La fecha {fecha} está fuera de la estadía de la reserva {reserva_id}",
                reserva_id=reserva_id,
                fecha=fecha.isoformat(),
                fecha_inicio=reserva.fecha_inicio.date().isoformat(),
                fecha_fin=reserva.fecha_fin.date().isoformat(),
            )
        return reserva

    @staticmethod
    @registrar_rechazos("servicios")
    def contratar(
        db: Session,
        servicio_id: int,
        cliente_id: int,
        cantidad: int,
        disponibilidad_id: int,
        fecha: date,
        reserva_id: Optional[int] = None,
        hora: Optional[time] = None,
        observaciones: Optional[str] = None,
        usuario: str = USUARIO_SISTEMA,
    ) -> ServicioContratado:
        """
        Registra la contratación en estado pendiente.

        Raises:
            InvalidQuantityError: cantidad < 1
            NotFoundError: servicio, cliente, plantilla o reserva inexistente
            SlotMismatchError: fecha u hora que no corresponden a la plantilla
            InvalidTransitionError: reserva que no está confirmada ni en check-in
            InvalidRangeError: fecha fuera de la estadía de la reserva
            CapacityExceededError: cupos restantes < cantidad
            ConflictError: timeout esperando el bloqueo del cupo
        """
        if cantidad is None or cantidad < 1:
            raise InvalidQuantityError("La cantidad debe ser al menos 1", cantidad=cantidad)

        claves = [clave_cupo(servicio_id, fecha)]
        if reserva_id is not None:
            claves.append(clave_reserva(reserva_id))

        with transaccion_serializada(db, claves):
            servicio = CatalogoService.obtener_servicio(db, servicio_id)
            CatalogoService.obtener_cliente(db, cliente_id)
            disponibilidad = CatalogoService.obtener_disponibilidad(db, disponibilidad_id, servicio_id)
            CuposService.validar_dia(disponibilidad, fecha)
            hora_servicio = CuposService.validar_horario(disponibilidad, hora)

            if reserva_id is not None:
                ServicioContratadoService._validar_reserva(db, reserva_id, fecha)

            bloquear_filas(db, Servicio, [servicio_id])
            restantes = CuposService.cupos_restantes(db, servicio_id, disponibilidad_id, fecha)
            if restantes < cantidad:
                raise CapacityExceededError(servicio_id, fecha, cantidad, restantes)

            contrato = ServicioContratado(
                servicio_id=servicio_id,
                reserva_id=reserva_id,
                cliente_id=cliente_id,
                disponibilidad_id=disponibilidad_id,
                fecha_contratacion=utc_now(),
                fecha_servicio=fecha,
                hora_servicio=hora_servicio,
                cantidad=cantidad,
                precio_unitario=servicio.precio,
                estado=EstadoServicioContratado.PENDIENTE,
                observaciones=observaciones,
                activo=True,
            )
            db.add(contrato)

        db.refresh(contrato)
        log_event(
            "servicios", usuario, "Servicio contratado",
            f"contrato_id={contrato.id} servicio_id={servicio_id} fecha={fecha} "
            f"cantidad={cantidad} cupos_restantes={restantes - cantidad}",
        )
        return contrato

    @staticmethod
    def _transicionar(db: Session, contrato_id: int, accion: str, usuario: str) -> ServicioContratado:
        # La reserva también se bloquea: sus cascadas modifican estos mismos contratos
        reserva_id = ServicioContratadoService._obtener(db, contrato_id).reserva_id
        claves = [clave_contrato(contrato_id)]
        if reserva_id is not None:
            claves.append(clave_reserva(reserva_id))

        with transaccion_serializada(db, claves):
            if reserva_id is not None:
                bloquear_filas(db, Reserva, [reserva_id])
            bloquear_filas(db, ServicioContratado, [contrato_id])
            contrato = ServicioContratadoService._obtener(db, contrato_id)
            anterior, nuevo = MAQUINA_SERVICIO_CONTRATADO.aplicar(contrato, accion)

        db.refresh(contrato)
        log_event(
            "servicios", usuario, f"Servicio contratado {nuevo.value}",
            f"contrato_id={contrato_id} {anterior.value}->{nuevo.value}",
        )
        return contrato

    @staticmethod
    @registrar_rechazos("servicios")
    def confirmar(db: Session, contrato_id: int, usuario: str = USUARIO_SISTEMA) -> ServicioContratado:
        return ServicioContratadoService._transicionar(db, contrato_id, "confirmar", usuario)

    @staticmethod
    @registrar_rechazos("servicios")
    def completar(db: Session, contrato_id: int, usuario: str = USUARIO_SISTEMA) -> ServicioContratado:
        return ServicioContratadoService._transicionar(db, contrato_id, "completar", usuario)

    @staticmethod
    @registrar_rechazos("servicios")
    def cancelar(db: Session, contrato_id: int, usuario: str = USUARIO_SISTEMA) -> ServicioContratado:
        return ServicioContratadoService._transicionar(db, contrato_id, "cancelar", usuario)

    @staticmethod
    def obtener(db: Session, contrato_id: int) -> ServicioContratado:
        return ServicioContratadoService._obtener(db, contrato_id)

    @staticmethod
    def listar_por_reserva(db: Session, reserva_id: int) -> List[ServicioContratado]:
        return (
            db.query(ServicioContratado)
            .filter(ServicioContratado.reserva_id == reserva_id, ServicioContratado.activo.is_(True))
            .order_by(ServicioContratado.fecha_servicio, ServicioContratado.id)
            .all()
        )

    @staticmethod
    def listar_por_cliente(db: Session, cliente_id: int) -> List[ServicioContratado]:
        return (
            db.query(ServicioContratado)
            .filter(ServicioContratado.cliente_id == cliente_id, ServicioContratado.activo.is_(True))
            .order_by(ServicioContratado.fecha_servicio, ServicioContratado.id)
            .all()
        )
