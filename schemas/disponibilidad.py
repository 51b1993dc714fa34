from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict


class HabitacionDisponibleRead(BaseModel):
    id: int
    numero: str
    capacidad: int
    categoria_id: Optional[int] = None
    estado: str

    model_config = ConfigDict(from_attributes=True)


class VerificacionHabitacionRead(BaseModel):
    habitacion_id: int
    fecha_inicio: datetime
    fecha_fin: datetime
    disponible: bool


class DiaCalendario(BaseModel):
    fecha: date
    estado: str
    reserva_id: Optional[int] = None


class CalendarioHabitacionRead(BaseModel):
    habitacion: dict
    periodo: dict
    calendario: List[DiaCalendario]
