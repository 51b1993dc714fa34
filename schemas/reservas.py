from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, constr, ConfigDict

from models.reserva import EstadoReserva


class HistorialReservaRead(BaseModel):
    id: int
    estado_anterior: Optional[str] = None
    estado_nuevo: str
    usuario: str
    fecha: datetime
    motivo: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ReservaDetalleCreate(BaseModel):
    habitacion_id: int = Field(..., gt=0)
    fecha_inicio: datetime
    fecha_fin: datetime
    nota: Optional[constr(strip_whitespace=True, max_length=500)] = None


class ReservaDetalleRead(ReservaDetalleCreate):
    id: int
    reserva_id: int
    activo: bool

    model_config = ConfigDict(from_attributes=True)


class ReservaCreate(BaseModel):
    # El rango de cada línea lo valida el motor (InvalidRangeError)
    cliente_id: int = Field(..., gt=0)
    detalles: List[ReservaDetalleCreate]
    usuario: constr(strip_whitespace=True, min_length=1, max_length=50) = "sistema"


class ReservaAccion(BaseModel):
    usuario: constr(strip_whitespace=True, min_length=1, max_length=50) = "sistema"
    motivo: Optional[constr(strip_whitespace=True, max_length=500)] = None


class ReservaRead(BaseModel):
    id: int
    cliente_id: int
    fecha_reserva: datetime
    fecha_inicio: datetime
    fecha_fin: datetime
    estado: EstadoReserva
    activo: bool
    creado_por: Optional[str] = None
    actualizado_en: Optional[datetime] = None
    actualizado_por: Optional[str] = None
    detalles: List[ReservaDetalleRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
