"""
Endpoints de contratación de servicios y consulta de cupos
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from config import USUARIO_SISTEMA
from database import conexion
from schemas.servicios import (
    ServicioContratadoCreate,
    ServicioContratadoRead,
    ServicioContratadoAccion,
    CuposRead,
    DisponibilidadCuposRead,
)
from services.cupos_service import CuposService
from services.servicio_contratado_service import ServicioContratadoService
from utils.logging_utils import log_event


router = APIRouter(prefix="/servicios-contratados", tags=["Servicios contratados"])

_ACCIONES = {
    "confirmar": ServicioContratadoService.confirmar,
    "completar": ServicioContratadoService.completar,
    "cancelar": ServicioContratadoService.cancelar,
}


def _error_base(accion: str, usuario: str, error: SQLAlchemyError) -> HTTPException:
    log_event("servicios", usuario, f"Error al {accion}", f"error={str(error)}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error al {accion}",
    )


@router.get("/cupos", response_model=CuposRead)
def consultar_cupos(
    servicio_id: int = Query(..., gt=0),
    disponibilidad_id: int = Query(..., gt=0),
    fecha: date = Query(..., description="Fecha del servicio"),
    db: Session = Depends(conexion.get_db),
):
    """Cupos restantes de una plantilla en una fecha concreta (lectura sin bloqueo)."""
    restantes = CuposService.cupos_restantes(db, servicio_id, disponibilidad_id, fecha)
    return CuposRead(
        servicio_id=servicio_id,
        disponibilidad_id=disponibilidad_id,
        fecha=fecha,
        cupos_restantes=restantes,
    )


@router.get("/cupos/rango", response_model=List[DisponibilidadCuposRead])
def consultar_cupos_rango(
    servicio_id: int = Query(..., gt=0),
    fecha_inicio: date = Query(...),
    fecha_fin: date = Query(...),
    db: Session = Depends(conexion.get_db),
):
    return CuposService.disponibilidad_con_cupos(db, servicio_id, fecha_inicio, fecha_fin)


@router.post("", response_model=ServicioContratadoRead, status_code=status.HTTP_201_CREATED)
def contratar_servicio(datos: ServicioContratadoCreate, db: Session = Depends(conexion.get_db)):
    """
    Contrata un servicio para una fecha. Responde 409 si no queda cupo.
    """
    try:
        return ServicioContratadoService.contratar(
            db,
            servicio_id=datos.servicio_id,
            cliente_id=datos.cliente_id,
            cantidad=datos.cantidad,
            disponibilidad_id=datos.disponibilidad_id,
            fecha=datos.fecha_servicio,
            reserva_id=datos.reserva_id,
            hora=datos.hora_servicio,
            observaciones=datos.observaciones,
            usuario=datos.usuario,
        )
    except SQLAlchemyError as e:
        raise _error_base("contratar servicio", datos.usuario, e)


@router.get("", response_model=List[ServicioContratadoRead])
def listar_servicios_contratados(
    cliente_id: Optional[int] = Query(None, gt=0),
    reserva_id: Optional[int] = Query(None, gt=0),
    db: Session = Depends(conexion.get_db),
):
    if reserva_id is not None:
        return ServicioContratadoService.listar_por_reserva(db, reserva_id)
    if cliente_id is not None:
        return ServicioContratadoService.listar_por_cliente(db, cliente_id)
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Indique cliente_id o reserva_id",
    )


@router.get("/{contrato_id}", response_model=ServicioContratadoRead)
def obtener_servicio_contratado(contrato_id: int = Path(..., gt=0), db: Session = Depends(conexion.get_db)):
    return ServicioContratadoService.obtener(db, contrato_id)


@router.post("/{contrato_id}/{accion}", response_model=ServicioContratadoRead)
def transicionar_servicio_contratado(
    contrato_id: int = Path(..., gt=0),
    accion: str = Path(..., description="confirmar | completar | cancelar"),
    datos: Optional[ServicioContratadoAccion] = None,
    db: Session = Depends(conexion.get_db),
):
    operacion = _ACCIONES.get(accion)
    if operacion is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Acción desconocida: {accion}",
        )
    usuario = datos.usuario if datos else USUARIO_SISTEMA
    try:
        return operacion(db, contrato_id, usuario=usuario)
    except SQLAlchemyError as e:
        raise _error_base(f"{accion} servicio contratado", usuario, e)
