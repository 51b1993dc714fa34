"""
Barridos operacionales invocados desde afuera (cron, scripts/barrido_operacional.py).
No hay planificador interno. Cada reserva o servicio se procesa en su propia
transacción; un fallo individual se loguea y no detiene el resto.
"""
from datetime import date, datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from config import USUARIO_SISTEMA
from models.checkin_checkout import EstadoCheckInCheckOut
from models.reserva import Reserva, EstadoReserva
from models.servicios import ServicioContratado, EstadoServicioContratado
from services.checkin_checkout_service import CheckInCheckOutService
from services.errors import ReservaEngineError
from services.reserva_service import ReservaService
from services.servicio_contratado_service import ServicioContratadoService
from utils.logging_utils import log_event, log_rechazo
from utils.timezone import utc_now, to_naive_utc, get_operational_date


class MantenimientoService:

    @staticmethod
    def finalizar_estadias_vencidas(
        db: Session, ahora: Optional[datetime] = None, usuario: str = USUARIO_SISTEMA
    ) -> Dict[str, list]:
        """
        Reservas en check_in con fecha_fin vencida: check-out de los registros
        pendientes y cierre de la reserva.
        Las confirmadas vencidas no tienen transición válida; solo se reportan.
        """
        ahora = to_naive_utc(ahora) if ahora else utc_now()
        resultado = {"finalizadas": [], "fallidas": [], "confirmadas_vencidas": []}

        vencidas = (
            db.query(Reserva.id)
            .filter(
                Reserva.activo.is_(True),
                Reserva.estado == EstadoReserva.CHECK_IN,
                Reserva.fecha_fin < ahora,
            )
            .order_by(Reserva.id)
            .all()
        )
        for (reserva_id,) in vencidas:
            try:
                for registro in CheckInCheckOutService.listar_por_reserva(db, reserva_id):
                    if registro.estado == EstadoCheckInCheckOut.PENDIENTE:
                        CheckInCheckOutService.check_out(db, registro.id, usuario=usuario)
                ReservaService.completar(db, reserva_id, usuario=usuario)
                resultado["finalizadas"].append(reserva_id)
            except ReservaEngineError as exc:
                resultado["fallidas"].append(reserva_id)
                log_rechazo("mantenimiento", usuario, "Finalizar estadía vencida", f"reserva_id={reserva_id} error={exc.mensaje}")

        sin_check_in = (
            db.query(Reserva.id)
            .filter(
                Reserva.activo.is_(True),
                Reserva.estado == EstadoReserva.CONFIRMADA,
                Reserva.fecha_fin < ahora,
            )
            .order_by(Reserva.id)
            .all()
        )
        resultado["confirmadas_vencidas"] = [reserva_id for (reserva_id,) in sin_check_in]

        log_event(
            "mantenimiento", usuario, "Barrido de estadías vencidas",
            f"finalizadas={len(resultado['finalizadas'])} fallidas={len(resultado['fallidas'])} "
            f"confirmadas_vencidas={resultado['confirmadas_vencidas']}",
        )
        return resultado

    @staticmethod
    def completar_servicios_vencidos(
        db: Session, hoy: Optional[date] = None, usuario: str = USUARIO_SISTEMA
    ) -> Dict[str, list]:
        """Servicios confirmados con fecha_servicio anterior a hoy (fecha del hotel) -> completado."""
        hoy = hoy or get_operational_date()
        resultado = {"completados": [], "fallidos": []}

        vencidos = (
            db.query(ServicioContratado.id)
            .filter(
                ServicioContratado.activo.is_(True),
                ServicioContratado.estado == EstadoServicioContratado.CONFIRMADO,
                ServicioContratado.fecha_servicio < hoy,
            )
            .order_by(ServicioContratado.id)
            .all()
        )
        for (contrato_id,) in vencidos:
            try:
                ServicioContratadoService.completar(db, contrato_id, usuario=usuario)
                resultado["completados"].append(contrato_id)
            except ReservaEngineError as exc:
                resultado["fallidos"].append(contrato_id)
                log_rechazo("mantenimiento", usuario, "Completar servicio vencido", f"contrato_id={contrato_id} error={exc.mensaje}")

        log_event(
            "mantenimiento", usuario, "Barrido de servicios vencidos",
            f"hoy={hoy} completados={len(resultado['completados'])} fallidos={len(resultado['fallidos'])}",
        )
        return resultado
