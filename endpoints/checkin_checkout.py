"""
Endpoints de Check-out por habitación
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from config import USUARIO_SISTEMA
from database import conexion
from endpoints.reservas import reserva_a_respuesta
from schemas.checkin_checkout import CheckInCheckOutRead, CheckOutRequest, CheckOutResponse
from services.checkin_checkout_service import CheckInCheckOutService
from services.reserva_service import ReservaService
from utils.logging_utils import log_event


router = APIRouter(prefix="/checkin-checkout", tags=["Check-in / Check-out"])


@router.get("/{registro_id}", response_model=CheckInCheckOutRead)
def obtener_registro(registro_id: int = Path(..., gt=0), db: Session = Depends(conexion.get_db)):
    return CheckInCheckOutService.obtener(db, registro_id)


@router.post("/{registro_id}/check-out", response_model=CheckOutResponse)
def realizar_check_out(
    registro_id: int = Path(..., gt=0),
    finalizar_reserva: bool = Query(False, description="Completar la reserva si no quedan check-outs pendientes"),
    datos: Optional[CheckOutRequest] = None,
    db: Session = Depends(conexion.get_db),
):
    """
    Cierra la ocupación de una habitación.
    Con finalizar_reserva=true, cuando era el último registro pendiente
    también completa la reserva (en una transacción posterior).
    """
    usuario = datos.usuario if datos else USUARIO_SISTEMA
    try:
        registro = CheckInCheckOutService.check_out(db, registro_id, usuario=usuario)
        reserva_id = CheckInCheckOutService.reserva_de(db, registro)
        pendientes = CheckInCheckOutService.pendientes(db, reserva_id)

        reserva = None
        if finalizar_reserva and pendientes == 0:
            reserva = reserva_a_respuesta(db, ReservaService.completar(db, reserva_id, usuario=usuario))

        return CheckOutResponse(
            registro=CheckInCheckOutRead.model_validate(registro),
            pendientes=pendientes,
            reserva=reserva,
        )
    except SQLAlchemyError as e:
        log_event("checkout", usuario, "Error al realizar check-out", f"error={str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al realizar check-out",
        )
