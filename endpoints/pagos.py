"""
Endpoints del libro de pagos
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from config import USUARIO_SISTEMA
from database import conexion
from schemas.pagos import PagoCreate, PagoRead, PagoAccion, PagoAsociar
from schemas.servicios import ServicioContratadoRead
from services.pago_service import PagoService
from utils.logging_utils import log_event


router = APIRouter(prefix="/pagos", tags=["Pagos"])


def _error_base(accion: str, usuario: str, error: SQLAlchemyError) -> HTTPException:
    log_event("pagos", usuario, f"Error al {accion}", f"error={str(error)}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error al {accion}",
    )


@router.post("", response_model=PagoRead, status_code=status.HTTP_201_CREATED)
def registrar_pago(pago: PagoCreate, db: Session = Depends(conexion.get_db)):
    try:
        return PagoService.registrar(db, pago.reserva_id, pago.monto, pago.metodo, usuario=pago.usuario)
    except SQLAlchemyError as e:
        raise _error_base("registrar pago", pago.usuario, e)


@router.get("/{pago_id}", response_model=PagoRead)
def obtener_pago(pago_id: int = Path(..., gt=0), db: Session = Depends(conexion.get_db)):
    return PagoService.obtener(db, pago_id)


@router.post("/{pago_id}/completar", response_model=PagoRead)
def completar_pago(
    pago_id: int = Path(..., gt=0),
    datos: Optional[PagoAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    usuario = datos.usuario if datos else USUARIO_SISTEMA
    try:
        return PagoService.completar(db, pago_id, usuario=usuario)
    except SQLAlchemyError as e:
        raise _error_base("completar pago", usuario, e)


@router.post("/{pago_id}/rechazar", response_model=PagoRead)
def rechazar_pago(
    pago_id: int = Path(..., gt=0),
    datos: Optional[PagoAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    usuario = datos.usuario if datos else USUARIO_SISTEMA
    try:
        return PagoService.rechazar(db, pago_id, usuario=usuario)
    except SQLAlchemyError as e:
        raise _error_base("rechazar pago", usuario, e)


@router.post("/{pago_id}/asociar", response_model=ServicioContratadoRead)
def asociar_pago(
    datos: PagoAsociar,
    pago_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
):
    """Vincula el pago a un servicio contratado."""
    try:
        return PagoService.asociar_a_contrato(db, pago_id, datos.contrato_id, usuario=datos.usuario)
    except SQLAlchemyError as e:
        raise _error_base("asociar pago", datos.usuario, e)
