"""
Modelos de Servicios
Incluye: catálogo de servicios, plantillas de disponibilidad semanal con cupo, servicios contratados
"""

from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Time, Boolean, Numeric, Text, Index,
    ForeignKey, CheckConstraint, Enum as SQLEnum
)
from database.conexion import Base
from utils.timezone import utc_now


class TipoServicio(str, Enum):
    GRATUITO = "gratuito"
    PAGO = "pago"


class DiaSemana(str, Enum):
    """En el mismo orden que date.weekday()"""
    LUNES = "lunes"
    MARTES = "martes"
    MIERCOLES = "miercoles"
    JUEVES = "jueves"
    VIERNES = "viernes"
    SABADO = "sabado"
    DOMINGO = "domingo"

    @classmethod
    def desde_fecha(cls, fecha) -> "DiaSemana":
        return list(cls)[fecha.weekday()]


class EstadoServicioContratado(str, Enum):
    PENDIENTE = "pendiente"
    CONFIRMADO = "confirmado"
    COMPLETADO = "completado"
    CANCELADO = "cancelado"


# Contratos que consumen cupo en su fecha de servicio
ESTADOS_QUE_OCUPAN_CUPO = (
    EstadoServicioContratado.PENDIENTE,
    EstadoServicioContratado.CONFIRMADO,
    EstadoServicioContratado.COMPLETADO,
)


def _enum_valores(obj):
    return [e.value for e in obj]


# ----------- SERVICIO -----------
class Servicio(Base):
    __tablename__ = "servicios"
    __table_args__ = (
        Index('idx_servicio_tipo', 'tipo'),
        Index('idx_servicio_disponible', 'disponible'),
    )

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), nullable=False)
    descripcion = Column(Text, nullable=True)
    tipo = Column(SQLEnum(TipoServicio, name="tipo_servicio", values_callable=_enum_valores), nullable=False)
    precio = Column(Numeric(10, 2), nullable=False, default=0)

    # Control
    disponible = Column(Boolean, default=True, nullable=False)

    # Auditoría
    creado_en = Column(DateTime, default=utc_now)
    actualizado_en = Column(DateTime, default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return f"<Servicio(id={self.id}, nombre='{self.nombre}', tipo='{self.tipo}')>"


# ----------- DISPONIBILIDAD (plantilla semanal) -----------
class ServicioDisponibilidad(Base):
    """Ej: Spa, lunes 09:00, cupo 4"""
    __tablename__ = "servicio_disponibilidades"
    __table_args__ = (
        CheckConstraint('cupo_maximo >= 1', name='ck_disponibilidad_cupo_minimo'),
        Index('idx_disp_servicio_dia', 'servicio_id', 'dia_semana'),
    )

    id = Column(Integer, primary_key=True, index=True)
    servicio_id = Column(Integer, ForeignKey("servicios.id"), nullable=False)
    dia_semana = Column(SQLEnum(DiaSemana, name="dia_semana", values_callable=_enum_valores), nullable=False)
    hora_inicio = Column(Time, nullable=False)
    hora_fin = Column(Time, nullable=True)
    cupo_maximo = Column(Integer, nullable=False)
    hora_fija = Column(Boolean, default=False, nullable=False)
    activo = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return (
            f"<ServicioDisponibilidad(servicio_id={self.servicio_id}, dia='{self.dia_semana}', "
            f"cupo={self.cupo_maximo})>"
        )


# ----------- SERVICIO CONTRATADO -----------
class ServicioContratado(Base):
    __tablename__ = "servicios_contratados"
    __table_args__ = (
        CheckConstraint('cantidad >= 1', name='ck_contratado_cantidad_minima'),
        Index('idx_contratado_slot', 'servicio_id', 'fecha_servicio', 'estado'),
        Index('idx_contratado_reserva', 'reserva_id'),
        Index('idx_contratado_cliente', 'cliente_id'),
    )

    id = Column(Integer, primary_key=True, index=True)
    servicio_id = Column(Integer, ForeignKey("servicios.id"), nullable=False)
    reserva_id = Column(Integer, ForeignKey("reservas.id"), nullable=True)
    cliente_id = Column(Integer, ForeignKey("clientes.id"), nullable=False)
    pago_id = Column(Integer, ForeignKey("pagos.id"), nullable=True)
    disponibilidad_id = Column(Integer, ForeignKey("servicio_disponibilidades.id"), nullable=True)

    fecha_contratacion = Column(DateTime, nullable=False, default=utc_now)
    # Fecha concreta del turno: clave para contar cupos
    fecha_servicio = Column(Date, nullable=False)
    hora_servicio = Column(Time, nullable=True)

    cantidad = Column(Integer, nullable=False, default=1)
    # Precio congelado al momento de contratar
    precio_unitario = Column(Numeric(10, 2), nullable=False)

    estado = Column(
        SQLEnum(EstadoServicioContratado, name="estado_servicio_contratado", values_callable=_enum_valores),
        default=EstadoServicioContratado.PENDIENTE,
        nullable=False,
    )
    observaciones = Column(String(500), nullable=True)

    # Control
    activo = Column(Boolean, default=True, nullable=False)
    actualizado_en = Column(DateTime, default=utc_now, onupdate=utc_now)

    @property
    def total(self):
        return self.precio_unitario * self.cantidad

    def __repr__(self):
        return f"<ServicioContratado(id={self.id}, servicio_id={self.servicio_id}, estado='{self.estado}')>"
