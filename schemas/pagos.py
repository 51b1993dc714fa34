from datetime import datetime
from pydantic import BaseModel, Field, constr, condecimal, ConfigDict

from models.pago import EstadoPago, MetodoPago


class PagoCreate(BaseModel):
    reserva_id: int = Field(..., gt=0)
    # Monto > 0 lo valida el motor (InvalidAmountError)
    monto: condecimal(max_digits=12, decimal_places=2)
    metodo: MetodoPago
    usuario: constr(strip_whitespace=True, min_length=1, max_length=50) = "sistema"


class PagoRead(BaseModel):
    id: int
    reserva_id: int
    monto: condecimal(max_digits=12, decimal_places=2)
    metodo: MetodoPago
    estado: EstadoPago
    fecha_pago: datetime

    model_config = ConfigDict(from_attributes=True)


class PagoAccion(BaseModel):
    usuario: constr(strip_whitespace=True, min_length=1, max_length=50) = "sistema"


class PagoAsociar(PagoAccion):
    contrato_id: int = Field(..., gt=0)
