"""
Libro de pagos de reservas.
Solo registra lo cobrado; no hay integración con pasarelas.
"""
from decimal import Decimal, InvalidOperation
from typing import List

from sqlalchemy.orm import Session

from config import USUARIO_SISTEMA
from models.pago import Pago, EstadoPago, MetodoPago
from models.reserva import Reserva
from models.servicios import ServicioContratado
from services.errors import NotFoundError, InvalidAmountError, InvalidPaymentMethodError
from utils.decorators import registrar_rechazos
from utils.locks import transaccion_serializada, bloquear_filas, clave_pago
from utils.logging_utils import log_event
from utils.state_machine import MaquinaEstados
from utils.timezone import utc_now


MAQUINA_PAGO = MaquinaEstados("Pago", {
    (EstadoPago.PENDIENTE, "completar"): EstadoPago.COMPLETADO,
    (EstadoPago.PENDIENTE, "rechazar"): EstadoPago.RECHAZADO,
})


def _monto_valido(monto) -> Decimal:
    try:
        valor = Decimal(str(monto))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError("Monto inválido", monto=str(monto)) from None
    if not valor.is_finite() or valor <= 0:
        raise InvalidAmountError("El monto debe ser mayor a cero", monto=str(monto))
    return valor.quantize(Decimal("0.01"))


def _metodo_valido(metodo) -> MetodoPago:
    try:
        return MetodoPago(metodo)
    except ValueError:
        raise InvalidPaymentMethodError(
            "Método de pago inválido",
            metodo=str(metodo),
            permitidos=[m.value for m in MetodoPago],
        ) from None


class PagoService:

    @staticmethod
    def obtener(db: Session, pago_id: int) -> Pago:
        pago = db.query(Pago).filter(Pago.id == pago_id).first()
        if not pago:
            raise NotFoundError("Pago", pago_id)
        return pago

    @staticmethod
    @registrar_rechazos("pagos")
    def registrar(
        db: Session, reserva_id: int, monto, metodo: MetodoPago, usuario: str = USUARIO_SISTEMA
    ) -> Pago:
        valor = _monto_valido(monto)
        metodo = _metodo_valido(metodo)

        with transaccion_serializada(db):
            if not db.query(Reserva).filter(Reserva.id == reserva_id).first():
                raise NotFoundError("Reserva", reserva_id)

            pago = Pago(
                reserva_id=reserva_id,
                monto=valor,
                metodo=metodo,
                estado=EstadoPago.PENDIENTE,
                fecha_pago=utc_now(),
            )
            db.add(pago)

        db.refresh(pago)
        log_event(
            "pagos", usuario, "Pago registrado",
            f"pago_id={pago.id} reserva_id={reserva_id} monto={valor} metodo={metodo.value}",
        )
        return pago

    @staticmethod
    def _transicionar(db: Session, pago_id: int, accion: str, usuario: str) -> Pago:
        with transaccion_serializada(db, [clave_pago(pago_id)]):
            bloquear_filas(db, Pago, [pago_id])
            pago = PagoService.obtener(db, pago_id)
            anterior, nuevo = MAQUINA_PAGO.aplicar(pago, accion)

        db.refresh(pago)
        log_event("pagos", usuario, f"Pago {nuevo.value}", f"pago_id={pago_id} {anterior.value}->{nuevo.value}")
        return pago

    @staticmethod
    @registrar_rechazos("pagos")
    def completar(db: Session, pago_id: int, usuario: str = USUARIO_SISTEMA) -> Pago:
        return PagoService._transicionar(db, pago_id, "completar", usuario)

    @staticmethod
    @registrar_rechazos("pagos")
    def rechazar(db: Session, pago_id: int, usuario: str = USUARIO_SISTEMA) -> Pago:
        return PagoService._transicionar(db, pago_id, "rechazar", usuario)

    @staticmethod
    @registrar_rechazos("pagos")
    def asociar_a_contrato(
        db: Session, pago_id: int, contrato_id: int, usuario: str = USUARIO_SISTEMA
    ) -> ServicioContratado:
        with transaccion_serializada(db):
            PagoService.obtener(db, pago_id)
            contrato = db.query(ServicioContratado).filter(ServicioContratado.id == contrato_id).first()
            if not contrato:
                raise NotFoundError("ServicioContratado", contrato_id)
            contrato.pago_id = pago_id

        db.refresh(contrato)
        log_event("pagos", usuario, "Pago asociado a servicio", f"pago_id={pago_id} contrato_id={contrato_id}")
        return contrato

    @staticmethod
    def listar_por_reserva(db: Session, reserva_id: int) -> List[Pago]:
        return (
            db.query(Pago)
            .filter(Pago.reserva_id == reserva_id)
            .order_by(Pago.fecha_pago, Pago.id)
            .all()
        )
