"""
Pagos: asiento contable de lo cobrado contra una reserva.
No procesa cobros; solo registra monto, método y estado.
"""

from enum import Enum
from sqlalchemy import (
    Column, Integer, DateTime, Numeric, ForeignKey, Index, CheckConstraint, Enum as SQLEnum
)
from database.conexion import Base
from utils.timezone import utc_now


class MetodoPago(str, Enum):
    EFECTIVO = "efectivo"
    TARJETA = "tarjeta"
    TRANSFERENCIA = "transferencia"


class EstadoPago(str, Enum):
    PENDIENTE = "pendiente"
    COMPLETADO = "completado"
    RECHAZADO = "rechazado"


class Pago(Base):
    __tablename__ = "pagos"
    __table_args__ = (
        CheckConstraint('monto > 0', name='ck_pago_monto_positivo'),
        Index('idx_pago_reserva', 'reserva_id'),
        Index('idx_pago_estado', 'estado'),
    )

    id = Column(Integer, primary_key=True, index=True)
    reserva_id = Column(Integer, ForeignKey("reservas.id"), nullable=False)
    monto = Column(Numeric(12, 2), nullable=False)
    metodo = Column(
        SQLEnum(MetodoPago, name="metodo_pago", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    estado = Column(
        SQLEnum(EstadoPago, name="estado_pago", values_callable=lambda obj: [e.value for e in obj]),
        default=EstadoPago.PENDIENTE,
        nullable=False,
    )
    fecha_pago = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self):
        return f"<Pago(id={self.id}, reserva_id={self.reserva_id}, monto={self.monto}, estado='{self.estado}')>"
