"""
Consultas de catálogo (habitaciones, servicios, plantillas de disponibilidad, clientes).
El alta y edición de estas entidades pertenece a otros módulos del hotel;
aquí solo se resuelven por id o se rechazan con NotFoundError.
"""
from sqlalchemy.orm import Session

from models.habitacion import Habitacion
from models.cliente import Cliente
from models.servicios import Servicio, ServicioDisponibilidad
from services.errors import NotFoundError


class CatalogoService:

    @staticmethod
    def obtener_habitacion(db: Session, habitacion_id: int) -> Habitacion:
        habitacion = db.query(Habitacion).filter(
            Habitacion.id == habitacion_id,
            Habitacion.activo.is_(True),
        ).first()
        if not habitacion:
            raise NotFoundError("Habitacion", habitacion_id)
        return habitacion

    @staticmethod
    def obtener_servicio(db: Session, servicio_id: int, solo_disponibles: bool = True) -> Servicio:
        query = db.query(Servicio).filter(Servicio.id == servicio_id)
        if solo_disponibles:
            query = query.filter(Servicio.disponible.is_(True))
        servicio = query.first()
        if not servicio:
            raise NotFoundError("Servicio", servicio_id)
        return servicio

    @staticmethod
    def obtener_disponibilidad(
        db: Session, disponibilidad_id: int, servicio_id: int = None
    ) -> ServicioDisponibilidad:
        """Plantilla activa; si se indica servicio_id debe pertenecer a ese servicio."""
        query = db.query(ServicioDisponibilidad).filter(
            ServicioDisponibilidad.id == disponibilidad_id,
            ServicioDisponibilidad.activo.is_(True),
        )
        if servicio_id is not None:
            query = query.filter(ServicioDisponibilidad.servicio_id == servicio_id)
        disponibilidad = query.first()
        if not disponibilidad:
            raise NotFoundError("ServicioDisponibilidad", disponibilidad_id)
        return disponibilidad

    @staticmethod
    def obtener_cliente(db: Session, cliente_id: int) -> Cliente:
        cliente = db.query(Cliente).filter(
            Cliente.id == cliente_id,
            Cliente.activo.is_(True),
        ).first()
        if not cliente:
            raise NotFoundError("Cliente", cliente_id)
        return cliente
