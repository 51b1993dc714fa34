"""
Services para operaciones de Check-out
Los registros se abren en ReservaService.check_in (uno por línea de reserva);
aquí se cierran y se consultan. Cerrar un registro no avanza la reserva:
el llamador decide cuándo invocar ReservaService.completar.
"""

from typing import List

from sqlalchemy.orm import Session

from config import USUARIO_SISTEMA
from models.checkin_checkout import CheckInCheckOut, EstadoCheckInCheckOut
from models.reserva import ReservaDetalle
from services.errors import NotFoundError, AlreadyCheckedOutError
from utils.decorators import registrar_rechazos
from utils.locks import transaccion_serializada, bloquear_filas
from utils.logging_utils import log_event
from utils.state_machine import MaquinaEstados
from utils.timezone import utc_now


MAQUINA_CHECKIN_CHECKOUT = MaquinaEstados("CheckInCheckOut", {
    (EstadoCheckInCheckOut.PENDIENTE, "check_out"): EstadoCheckInCheckOut.REALIZADO,
})


class CheckInCheckOutService:
    """Servicio para el cierre de la ocupación de cada habitación"""

    @staticmethod
    def obtener(db: Session, registro_id: int) -> CheckInCheckOut:
        registro = db.query(CheckInCheckOut).filter(CheckInCheckOut.id == registro_id).first()
        if not registro:
            raise NotFoundError("CheckInCheckOut", registro_id)
        return registro

    @staticmethod
    @registrar_rechazos("checkout")
    def check_out(db: Session, registro_id: int, usuario: str = USUARIO_SISTEMA) -> CheckInCheckOut:
        """
        Registra la salida del huésped de una habitación.

        Raises:
            NotFoundError: registro inexistente
            AlreadyCheckedOutError: el registro ya estaba realizado
        """
        with transaccion_serializada(db, [("checkin_checkout", int(registro_id))]):
            bloquear_filas(db, CheckInCheckOut, [registro_id])
            registro = CheckInCheckOutService.obtener(db, registro_id)
            if registro.estado == EstadoCheckInCheckOut.REALIZADO:
                raise AlreadyCheckedOutError(
                    f"El registro {registro_id} ya tiene check-out",
                    registro_id=registro_id,
                    fecha_hora_check_out=registro.fecha_hora_check_out.isoformat()
                    if registro.fecha_hora_check_out else None,
                )

            MAQUINA_CHECKIN_CHECKOUT.aplicar(registro, "check_out")
            registro.fecha_hora_check_out = utc_now()

        db.refresh(registro)
        log_event(
            "checkout", usuario, "Check-out realizado",
            f"registro_id={registro_id} detalle_id={registro.reserva_detalle_id}",
        )
        return registro

    @staticmethod
    def listar_por_reserva(db: Session, reserva_id: int) -> List[CheckInCheckOut]:
        return (
            db.query(CheckInCheckOut)
            .join(ReservaDetalle, ReservaDetalle.id == CheckInCheckOut.reserva_detalle_id)
            .filter(ReservaDetalle.reserva_id == reserva_id)
            .order_by(CheckInCheckOut.id)
            .all()
        )

    @staticmethod
    def pendientes(db: Session, reserva_id: int) -> int:
        return (
            db.query(CheckInCheckOut)
            .join(ReservaDetalle, ReservaDetalle.id == CheckInCheckOut.reserva_detalle_id)
            .filter(
                ReservaDetalle.reserva_id == reserva_id,
                CheckInCheckOut.estado == EstadoCheckInCheckOut.PENDIENTE,
            )
            .count()
        )

    @staticmethod
    def reserva_de(db: Session, registro: CheckInCheckOut) -> int:
        detalle = db.query(ReservaDetalle).filter(ReservaDetalle.id == registro.reserva_detalle_id).first()
        return detalle.reserva_id
