"""
Errores de dominio del motor de reservas.
Cada error indica el status HTTP con el que lo expone la capa de endpoints.
"""
from typing import Optional


class ReservaEngineError(Exception):
    """Base de todos los errores de negocio"""
    status_code = 400
    codigo = "error_reserva"

    def __init__(self, mensaje: str, **contexto):
        super().__init__(mensaje)
        self.mensaje = mensaje
        self.contexto = contexto

    def to_dict(self) -> dict:
        detalle = {"error": self.codigo, "message": self.mensaje}
        if self.contexto:
            detalle["context"] = self.contexto
        return detalle


class NotFoundError(ReservaEngineError):
    status_code = 404
    codigo = "not_found"

    def __init__(self, entidad: str, entidad_id):
        super().__init__(f"{entidad} {entidad_id} no encontrado", entidad=entidad, id=entidad_id)
        self.entidad = entidad
        self.entidad_id = entidad_id


class InvalidRangeError(ReservaEngineError):
    status_code = 422
    codigo = "invalid_range"


class InvalidQuantityError(ReservaEngineError):
    status_code = 422
    codigo = "invalid_quantity"


class InvalidAmountError(ReservaEngineError):
    status_code = 422
    codigo = "invalid_amount"


class SlotMismatchError(ReservaEngineError):
    status_code = 422
    codigo = "slot_mismatch"


class RoomUnavailableError(ReservaEngineError):
    status_code = 409
    codigo = "room_unavailable"

    def __init__(self, habitacion_id: int, mensaje: Optional[str] = None, **contexto):
        super().__init__(
            mensaje or f"La habitación {habitacion_id} no está disponible en el rango solicitado",
            habitacion_id=habitacion_id,
            **contexto,
        )
        self.habitacion_id = habitacion_id


class CapacityExceededError(ReservaEngineError):
    status_code = 409
    codigo = "capacity_exceeded"

    def __init__(self, servicio_id: int, fecha, solicitados: int, restantes: int):
        super().__init__(
            f"Cupo insuficiente para el servicio {servicio_id} el {fecha}: "
            f"solicitados={solicitados} restantes={restantes}",
            servicio_id=servicio_id,
            fecha=str(fecha),
            solicitados=solicitados,
            restantes=restantes,
        )


class InvalidTransitionError(ReservaEngineError):
    status_code = 409
    codigo = "invalid_transition"

    def __init__(self, entidad: str, estado_actual, accion: str):
        estado = getattr(estado_actual, "value", estado_actual)
        super().__init__(
            f"{entidad}: la acción '{accion}' no está permitida desde el estado '{estado}'",
            entidad=entidad,
            estado=estado,
            accion=accion,
        )
        self.estado_actual = estado_actual
        self.accion = accion


class IncompleteCheckoutError(ReservaEngineError):
    status_code = 422
    codigo = "incomplete_checkout"


class AlreadyCheckedOutError(ReservaEngineError):
    status_code = 409
    codigo = "already_checked_out"


class ConflictError(ReservaEngineError):
    """Contención de bloqueos; el llamador debe reintentar con backoff."""
    status_code = 409
    codigo = "lock_conflict"


class InvalidPaymentMethodError(ReservaEngineError):
    status_code = 422
    codigo = "invalid_payment_method"
