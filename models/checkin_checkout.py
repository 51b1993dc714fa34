"""
Registro de ocupación por línea de reserva
Se crea al hacer check-in de la reserva y se cierra con el check-out del huésped.
"""

from enum import Enum
from sqlalchemy import (
    Column, Integer, DateTime, ForeignKey, Index, UniqueConstraint, Enum as SQLEnum
)
from database.conexion import Base


class EstadoCheckInCheckOut(str, Enum):
    PENDIENTE = "pendiente"
    REALIZADO = "realizado"


class CheckInCheckOut(Base):
    __tablename__ = "checkin_checkout"
    __table_args__ = (
        UniqueConstraint('reserva_detalle_id', name='uq_checkin_reserva_detalle'),
        Index('idx_checkin_estado', 'estado'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    reserva_detalle_id = Column(Integer, ForeignKey('reserva_detalles.id'), nullable=False)

    fecha_hora_check_in = Column(DateTime, nullable=False)
    fecha_hora_check_out = Column(DateTime, nullable=True)

    estado = Column(
        SQLEnum(
            EstadoCheckInCheckOut,
            name="estado_checkin_checkout",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        default=EstadoCheckInCheckOut.PENDIENTE,
        nullable=False,
    )

    def __repr__(self):
        return f"<CheckInCheckOut(id={self.id}, detalle={self.reserva_detalle_id}, estado='{self.estado}')>"
