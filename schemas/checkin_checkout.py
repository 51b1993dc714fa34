from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, constr

from models.checkin_checkout import EstadoCheckInCheckOut
from schemas.reservas import ReservaRead


class CheckInCheckOutRead(BaseModel):
    id: int
    reserva_detalle_id: int
    fecha_hora_check_in: datetime
    fecha_hora_check_out: Optional[datetime] = None
    estado: EstadoCheckInCheckOut

    model_config = ConfigDict(from_attributes=True)


class CheckOutRequest(BaseModel):
    usuario: constr(strip_whitespace=True, min_length=1, max_length=50) = "sistema"


class CheckOutResponse(BaseModel):
    registro: CheckInCheckOutRead
    pendientes: int
    reserva: Optional[ReservaRead] = None
