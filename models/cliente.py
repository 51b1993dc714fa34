"""
Modelo de Cliente
El perfil lo administra un colaborador externo; el motor de reservas solo lo consulta.
"""

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Boolean, UniqueConstraint, Index
)
from database.conexion import Base
from utils.timezone import utc_now


class Cliente(Base):
    __tablename__ = "clientes"
    __table_args__ = (
        UniqueConstraint('tipo_identificacion', 'numero_identificacion', name='uq_tipo_numero_identificacion'),
        Index('idx_cliente_email', 'email'),
        Index('idx_cliente_keycloak', 'keycloak_id'),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Información personal
    nombre = Column(String(60), nullable=False)
    apellido = Column(String(60), nullable=False)
    email = Column(String(100), nullable=True)
    telefono = Column(String(30), nullable=True)
    tipo_identificacion = Column(String(20), nullable=False, default="DNI")
    numero_identificacion = Column(String(40), nullable=False)
    fecha_nacimiento = Column(Date, nullable=True)

    # Identidad externa (proveedor de login)
    keycloak_id = Column(String(100), nullable=True)

    # Control
    activo = Column(Boolean, default=True, nullable=False)

    # Auditoría
    creado_en = Column(DateTime, default=utc_now)

    def __repr__(self):
        return f"<Cliente(id={self.id}, nombre='{self.nombre} {self.apellido}')>"
