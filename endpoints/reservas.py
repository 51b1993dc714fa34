from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from config import USUARIO_SISTEMA
from database import conexion
from models.reserva import Reserva
from schemas.reservas import (
    ReservaCreate,
    ReservaRead,
    ReservaAccion,
    ReservaDetalleRead,
    HistorialReservaRead,
)
from schemas.checkin_checkout import CheckInCheckOutRead
from schemas.servicios import ServicioContratadoRead
from schemas.pagos import PagoRead
from services.checkin_checkout_service import CheckInCheckOutService
from services.pago_service import PagoService
from services.reserva_service import ReservaService, LineaReserva
from services.servicio_contratado_service import ServicioContratadoService
from utils.logging_utils import log_event


router = APIRouter(prefix="/reservas", tags=["Reservas"])


def reserva_a_respuesta(db: Session, reserva: Reserva) -> ReservaRead:
    respuesta = ReservaRead.model_validate(reserva)
    respuesta.detalles = [
        ReservaDetalleRead.model_validate(detalle)
        for detalle in ReservaService.detalles(db, reserva.id, incluir_inactivos=True)
    ]
    return respuesta


def _error_base(accion: str, usuario: str, error: SQLAlchemyError) -> HTTPException:
    log_event("reservas", usuario, f"Error al {accion}", f"error={str(error)}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error al {accion}",
    )


@router.post("", response_model=ReservaRead, status_code=status.HTTP_201_CREATED)
def crear_reserva(reserva: ReservaCreate, db: Session = Depends(conexion.get_db)):
    """
    Crea una reserva pendiente. Responde 409 si alguna habitación no está disponible.
    """
    try:
        nueva = ReservaService.crear(
            db,
            reserva.cliente_id,
            [
                LineaReserva(d.habitacion_id, d.fecha_inicio, d.fecha_fin, d.nota)
                for d in reserva.detalles
            ],
            usuario=reserva.usuario,
        )
        return reserva_a_respuesta(db, nueva)
    except SQLAlchemyError as e:
        raise _error_base("crear reserva", reserva.usuario, e)


@router.get("/{reserva_id}", response_model=ReservaRead)
def obtener_reserva(reserva_id: int = Path(..., gt=0), db: Session = Depends(conexion.get_db)):
    return reserva_a_respuesta(db, ReservaService.obtener(db, reserva_id))


@router.get("/{reserva_id}/historial", response_model=List[HistorialReservaRead])
def historial_reserva(reserva_id: int = Path(..., gt=0), db: Session = Depends(conexion.get_db)):
    return ReservaService.historial(db, reserva_id)


@router.get("/{reserva_id}/checkin-checkout", response_model=List[CheckInCheckOutRead])
def registros_checkin_checkout(reserva_id: int = Path(..., gt=0), db: Session = Depends(conexion.get_db)):
    ReservaService.obtener(db, reserva_id)
    return CheckInCheckOutService.listar_por_reserva(db, reserva_id)


@router.get("/{reserva_id}/servicios", response_model=List[ServicioContratadoRead])
def servicios_de_reserva(reserva_id: int = Path(..., gt=0), db: Session = Depends(conexion.get_db)):
    ReservaService.obtener(db, reserva_id)
    return ServicioContratadoService.listar_por_reserva(db, reserva_id)


@router.get("/{reserva_id}/pagos", response_model=List[PagoRead])
def pagos_de_reserva(reserva_id: int = Path(..., gt=0), db: Session = Depends(conexion.get_db)):
    ReservaService.obtener(db, reserva_id)
    return PagoService.listar_por_reserva(db, reserva_id)


def _usuario(accion: Optional[ReservaAccion]) -> str:
    return accion.usuario if accion else USUARIO_SISTEMA


@router.post("/{reserva_id}/confirmar", response_model=ReservaRead)
def confirmar_reserva(
    reserva_id: int = Path(..., gt=0),
    accion: Optional[ReservaAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    """Re-verifica disponibilidad de todas las habitaciones y confirma."""
    usuario = _usuario(accion)
    try:
        return reserva_a_respuesta(db, ReservaService.confirmar(db, reserva_id, usuario=usuario))
    except SQLAlchemyError as e:
        raise _error_base("confirmar reserva", usuario, e)


@router.post("/{reserva_id}/check-in", response_model=ReservaRead)
def check_in_reserva(
    reserva_id: int = Path(..., gt=0),
    accion: Optional[ReservaAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    usuario = _usuario(accion)
    try:
        return reserva_a_respuesta(db, ReservaService.check_in(db, reserva_id, usuario=usuario))
    except SQLAlchemyError as e:
        raise _error_base("hacer check-in", usuario, e)


@router.post("/{reserva_id}/completar", response_model=ReservaRead)
def completar_reserva(
    reserva_id: int = Path(..., gt=0),
    accion: Optional[ReservaAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    """Requiere que todas las habitaciones tengan check-out."""
    usuario = _usuario(accion)
    try:
        return reserva_a_respuesta(db, ReservaService.completar(db, reserva_id, usuario=usuario))
    except SQLAlchemyError as e:
        raise _error_base("completar reserva", usuario, e)


@router.post("/{reserva_id}/cancelar", response_model=ReservaRead)
def cancelar_reserva(
    reserva_id: int = Path(..., gt=0),
    accion: Optional[ReservaAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    usuario = _usuario(accion)
    motivo = accion.motivo if accion else None
    try:
        return reserva_a_respuesta(
            db, ReservaService.cancelar(db, reserva_id, usuario=usuario, motivo=motivo)
        )
    except SQLAlchemyError as e:
        raise _error_base("cancelar reserva", usuario, e)


@router.post("/{reserva_id}/desactivar", response_model=ReservaRead)
def desactivar_reserva(
    reserva_id: int = Path(..., gt=0),
    accion: Optional[ReservaAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    """Baja lógica de una reserva cancelada."""
    usuario = _usuario(accion)
    try:
        return reserva_a_respuesta(db, ReservaService.desactivar(db, reserva_id, usuario=usuario))
    except SQLAlchemyError as e:
        raise _error_base("desactivar reserva", usuario, e)


@router.post("/{reserva_id}/activar", response_model=ReservaRead)
def activar_reserva(
    reserva_id: int = Path(..., gt=0),
    accion: Optional[ReservaAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    usuario = _usuario(accion)
    try:
        return reserva_a_respuesta(db, ReservaService.activar(db, reserva_id, usuario=usuario))
    except SQLAlchemyError as e:
        raise _error_base("activar reserva", usuario, e)
