from typing import Optional
from datetime import date, datetime, time
from pydantic import BaseModel, Field, PositiveInt, constr, condecimal, ConfigDict

from models.servicios import EstadoServicioContratado


# --------------------- SERVICIO CONTRATADO ---------------------
class ServicioContratadoCreate(BaseModel):
    servicio_id: int = Field(..., gt=0)
    cliente_id: int = Field(..., gt=0)
    disponibilidad_id: int = Field(..., gt=0)
    fecha_servicio: date
    # La cantidad mínima la valida el motor (InvalidQuantityError)
    cantidad: int = 1
    reserva_id: Optional[PositiveInt] = None
    hora_servicio: Optional[time] = None
    observaciones: Optional[constr(strip_whitespace=True, max_length=500)] = None
    usuario: constr(strip_whitespace=True, min_length=1, max_length=50) = "sistema"


class ServicioContratadoRead(BaseModel):
    id: int
    servicio_id: int
    cliente_id: int
    reserva_id: Optional[int] = None
    pago_id: Optional[int] = None
    disponibilidad_id: Optional[int] = None
    fecha_contratacion: datetime
    fecha_servicio: date
    hora_servicio: Optional[time] = None
    cantidad: int
    precio_unitario: condecimal(max_digits=10, decimal_places=2)
    total: condecimal(max_digits=12, decimal_places=2)
    estado: EstadoServicioContratado
    observaciones: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ServicioContratadoAccion(BaseModel):
    usuario: constr(strip_whitespace=True, min_length=1, max_length=50) = "sistema"


# --------------------- CUPOS ---------------------
class CuposRead(BaseModel):
    servicio_id: int
    disponibilidad_id: int
    fecha: date
    cupos_restantes: int


class DisponibilidadCuposRead(BaseModel):
    fecha: date
    disponibilidad_id: int
    dia_semana: str
    hora_inicio: time
    hora_fin: Optional[time] = None
    hora_fija: bool
    cupo_maximo: int
    cupos_ocupados: int
    cupos_restantes: int
