"""
Modelos de Reserva
Incluye: Estados tipados, detalle por habitación, historial de transiciones
Las relaciones son referencias por id; el motor consulta explícitamente lo que necesita.
"""

from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Boolean, Text,
    Index, Enum as SQLEnum
)
from database.conexion import Base
from enum import Enum
from utils.timezone import utc_now


# ========================================================================
# ENUMS
# ========================================================================

class EstadoReserva(str, Enum):
    """Ciclo de vida: pendiente -> confirmada -> check_in -> finalizada | cancelada"""
    PENDIENTE = "pendiente"
    CONFIRMADA = "confirmada"
    CHECK_IN = "check_in"
    FINALIZADA = "finalizada"
    CANCELADA = "cancelada"


# Reservas que bloquean la habitación en su rango de fechas
ESTADOS_QUE_BLOQUEAN = (
    EstadoReserva.PENDIENTE,
    EstadoReserva.CONFIRMADA,
    EstadoReserva.CHECK_IN,
)


# ----------- RESERVA -----------
class Reserva(Base):
    __tablename__ = "reservas"
    __table_args__ = (
        Index('idx_reserva_cliente', 'cliente_id'),
        Index('idx_reserva_estado', 'estado'),
        Index('idx_reserva_fechas', 'fecha_inicio', 'fecha_fin'),
    )

    id = Column(Integer, primary_key=True, index=True)
    cliente_id = Column(Integer, ForeignKey("clientes.id"), nullable=False)

    # Fechas (instantes UTC). fecha_inicio/fecha_fin envuelven los rangos de los detalles
    fecha_reserva = Column(DateTime, nullable=False, default=utc_now)
    fecha_inicio = Column(DateTime, nullable=False)
    fecha_fin = Column(DateTime, nullable=False)

    estado = Column(
        SQLEnum(EstadoReserva, name="estado_reserva", values_callable=lambda obj: [e.value for e in obj]),
        default=EstadoReserva.PENDIENTE,
        nullable=False,
    )

    # Control (baja lógica)
    activo = Column(Boolean, default=True, nullable=False)

    # Auditoría
    creado_por = Column(String(50), nullable=True)
    actualizado_en = Column(DateTime, default=utc_now, onupdate=utc_now)
    actualizado_por = Column(String(50), nullable=True)

    def __repr__(self):
        return f"<Reserva(id={self.id}, cliente_id={self.cliente_id}, estado='{self.estado}')>"


# ----------- RESERVA DETALLE (una línea por habitación) -----------
class ReservaDetalle(Base):
    __tablename__ = "reserva_detalles"
    __table_args__ = (
        Index('idx_resv_det_reserva', 'reserva_id'),
        Index('idx_resv_det_habitacion_fechas', 'habitacion_id', 'fecha_inicio', 'fecha_fin'),
    )

    id = Column(Integer, primary_key=True, index=True)
    reserva_id = Column(Integer, ForeignKey("reservas.id"), nullable=False)
    habitacion_id = Column(Integer, ForeignKey("habitaciones.id"), nullable=False)

    # Rango semiabierto [fecha_inicio, fecha_fin)
    fecha_inicio = Column(DateTime, nullable=False)
    fecha_fin = Column(DateTime, nullable=False)

    nota = Column(Text, nullable=True)
    activo = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<ReservaDetalle(reserva_id={self.reserva_id}, habitacion_id={self.habitacion_id})>"


# ----------- HISTORIAL RESERVA -----------
class HistorialReserva(Base):
    __tablename__ = "historial_reservas"
    __table_args__ = (
        Index('idx_hist_resv_reserva', 'reserva_id'),
        Index('idx_hist_resv_fecha', 'fecha'),
    )

    id = Column(Integer, primary_key=True, index=True)
    reserva_id = Column(Integer, ForeignKey("reservas.id"), nullable=False)

    # Estados
    estado_anterior = Column(String(20), nullable=True)
    estado_nuevo = Column(String(20), nullable=False)

    # Auditoría
    usuario = Column(String(50), nullable=False)
    fecha = Column(DateTime, default=utc_now)
    motivo = Column(Text, nullable=True)

    def __repr__(self):
        return f"<HistorialReserva(reserva_id={self.reserva_id}, estado='{self.estado_nuevo}')>"
