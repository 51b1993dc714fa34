"""
Endpoints para consulta de disponibilidad de habitaciones
Son lecturas de pantalla: el resultado puede cambiar antes de reservar.
"""
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from database import conexion
from schemas.disponibilidad import (
    HabitacionDisponibleRead,
    VerificacionHabitacionRead,
    CalendarioHabitacionRead,
)
from services.disponibilidad_service import DisponibilidadService
from utils.logging_utils import log_event
from utils.timezone import to_naive_utc


router = APIRouter(prefix="/disponibilidad", tags=["Disponibilidad"])


@router.get("/habitaciones", response_model=List[HabitacionDisponibleRead])
def consultar_disponibilidad(
    fecha_inicio: datetime = Query(..., description="Inicio (inclusive)"),
    fecha_fin: datetime = Query(..., description="Fin (exclusivo)"),
    categoria_id: Optional[int] = Query(None, gt=0, description="Categoría de habitación"),
    db: Session = Depends(conexion.get_db),
):
    """
    Consulta habitaciones disponibles para un rango [fecha_inicio, fecha_fin)
    """
    try:
        disponibles = DisponibilidadService.habitaciones_disponibles(
            db, to_naive_utc(fecha_inicio), to_naive_utc(fecha_fin), categoria_id
        )
        log_event(
            "disponibilidad",
            "sistema",
            "Consulta de disponibilidad",
            f"inicio={fecha_inicio} fin={fecha_fin} categoria={categoria_id} disponibles={len(disponibles)}"
        )
        return disponibles
    except SQLAlchemyError as e:
        log_event("disponibilidad", "sistema", "Error al consultar disponibilidad", f"error={str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al consultar disponibilidad de habitaciones"
        )


@router.get("/habitaciones/{habitacion_id}", response_model=VerificacionHabitacionRead)
def verificar_habitacion(
    habitacion_id: int = Path(..., gt=0),
    fecha_inicio: datetime = Query(...),
    fecha_fin: datetime = Query(...),
    reserva_id_excluir: Optional[int] = Query(None, gt=0),
    db: Session = Depends(conexion.get_db),
):
    inicio, fin = to_naive_utc(fecha_inicio), to_naive_utc(fecha_fin)
    disponible = DisponibilidadService.verificar_habitacion(db, habitacion_id, inicio, fin, reserva_id_excluir)
    return VerificacionHabitacionRead(
        habitacion_id=habitacion_id,
        fecha_inicio=inicio,
        fecha_fin=fin,
        disponible=disponible,
    )


@router.get("/calendario", response_model=CalendarioHabitacionRead)
def obtener_calendario_disponibilidad(
    habitacion_id: int = Query(..., gt=0, description="ID de la habitación"),
    fecha_inicio: date = Query(..., description="Fecha de inicio del calendario"),
    dias: int = Query(30, ge=1, le=365, description="Cantidad de días a consultar"),
    db: Session = Depends(conexion.get_db),
):
    """
    Obtiene un calendario de disponibilidad para una habitación específica
    """
    return DisponibilidadService.calendario_habitacion(db, habitacion_id, fecha_inicio, dias)
