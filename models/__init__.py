"""
Archivo de inicialización del paquete models.
Expone todas las clases de los diferentes archivos para que
SQLAlchemy (Base.metadata) las detecte al importar 'models'.
"""

# 1. Catálogo (habitaciones y clientes)
from .habitacion import CategoriaHabitacion, Habitacion
from .cliente import Cliente

# 2. Reservas
from .reserva import EstadoReserva, Reserva, ReservaDetalle, HistorialReserva
from .checkin_checkout import EstadoCheckInCheckOut, CheckInCheckOut

# 3. Pagos (antes que servicios: servicios_contratados referencia pagos)
from .pago import EstadoPago, MetodoPago, Pago

# 4. Servicios
from .servicios import (
    TipoServicio,
    DiaSemana,
    EstadoServicioContratado,
    Servicio,
    ServicioDisponibilidad,
    ServicioContratado,
)

__all__ = [
    "CategoriaHabitacion", "Habitacion",
    "Cliente",
    "EstadoReserva", "Reserva", "ReservaDetalle", "HistorialReserva",
    "EstadoCheckInCheckOut", "CheckInCheckOut",
    "EstadoPago", "MetodoPago", "Pago",
    "TipoServicio", "DiaSemana", "EstadoServicioContratado",
    "Servicio", "ServicioDisponibilidad", "ServicioContratado",
]
