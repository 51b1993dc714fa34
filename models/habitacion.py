"""
Catálogo de habitaciones
Habitaciones y categorías son datos de referencia: el motor de reservas solo los consulta.
"""

from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Boolean, Numeric, Text, Index
)
from database.conexion import Base
from utils.timezone import utc_now


class CategoriaHabitacion(Base):
    """
    Tipos de habitación con su precio base
    Ejemplo: Simple, Doble, Suite
    """
    __tablename__ = "categorias_habitaciones"
    __table_args__ = (
        Index('idx_categoria_nombre', 'nombre'),
    )

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(50), nullable=False, unique=True)
    descripcion = Column(Text, nullable=True)
    precio_base = Column(Numeric(10, 2), nullable=False)
    activo = Column(Boolean, default=True, nullable=False)
    creado_en = Column(DateTime, default=utc_now)

    def __repr__(self):
        return f"<CategoriaHabitacion(id={self.id}, nombre='{self.nombre}')>"


class Habitacion(Base):
    """
    Habitación física del hotel
    - estado lo actualizan housekeeping/operaciones (disponible, ocupada, mantenimiento)
    - activo=False la saca del inventario reservable
    """
    __tablename__ = "habitaciones"
    __table_args__ = (
        Index('idx_habitacion_numero', 'numero'),
        Index('idx_habitacion_categoria', 'categoria_id'),
    )

    id = Column(Integer, primary_key=True, index=True)
    numero = Column(String(10), nullable=False, unique=True)
    capacidad = Column(Integer, nullable=False, default=1)
    descripcion = Column(Text, nullable=True)
    categoria_id = Column(Integer, ForeignKey("categorias_habitaciones.id"), nullable=True)
    estado = Column(String(30), nullable=False, default="disponible")

    # Control
    activo = Column(Boolean, default=True, nullable=False)

    # Auditoría
    creado_en = Column(DateTime, default=utc_now)
    actualizado_en = Column(DateTime, default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return f"<Habitacion(id={self.id}, numero='{self.numero}', estado='{self.estado}')>"
