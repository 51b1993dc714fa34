"""
Verificación de disponibilidad de habitaciones.

Una habitación está ocupada en [inicio, fin) si existe un detalle activo cuya
reserva está pendiente, confirmada o en check-in y cuyo rango se superpone:
existente.inicio < fin AND inicio < existente.fin (intervalos semiabiertos,
por lo que el día de salida de uno puede ser el de entrada de otro).

Son lecturas sin bloqueo; la garantía de no doble reserva la da ReservaService
al re-verificar bajo los bloqueos de habitación.
"""
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from models.habitacion import Habitacion
from models.reserva import Reserva, ReservaDetalle, EstadoReserva, ESTADOS_QUE_BLOQUEAN
from services.catalogo import CatalogoService
from services.errors import InvalidRangeError


def validar_rango(inicio: datetime, fin: datetime) -> None:
    if inicio is None or fin is None or inicio >= fin:
        raise InvalidRangeError(
            "La fecha de inicio debe ser anterior a la fecha de fin",
            inicio=str(inicio),
            fin=str(fin),
        )


def _detalles_superpuestos(db: Session, inicio: datetime, fin: datetime, reserva_id_excluir: Optional[int] = None):
    query = (
        db.query(ReservaDetalle, Reserva)
        .join(Reserva, Reserva.id == ReservaDetalle.reserva_id)
        .filter(
            ReservaDetalle.activo.is_(True),
            Reserva.activo.is_(True),
            Reserva.estado.in_(ESTADOS_QUE_BLOQUEAN),
            ReservaDetalle.fecha_inicio < fin,
            ReservaDetalle.fecha_fin > inicio,
        )
    )
    if reserva_id_excluir is not None:
        query = query.filter(Reserva.id != reserva_id_excluir)
    return query


class DisponibilidadService:

    @staticmethod
    def verificar_habitacion(
        db: Session,
        habitacion_id: int,
        inicio: datetime,
        fin: datetime,
        reserva_id_excluir: Optional[int] = None,
    ) -> bool:
        """
        True si la habitación está libre en [inicio, fin).

        Raises:
            InvalidRangeError: inicio >= fin
            NotFoundError: la habitación no existe o está inactiva
        """
        validar_rango(inicio, fin)
        CatalogoService.obtener_habitacion(db, habitacion_id)

        conflicto = (
            _detalles_superpuestos(db, inicio, fin, reserva_id_excluir)
            .filter(ReservaDetalle.habitacion_id == habitacion_id)
            .first()
        )
        return conflicto is None

    @staticmethod
    def habitaciones_disponibles(
        db: Session,
        inicio: datetime,
        fin: datetime,
        categoria_id: Optional[int] = None,
    ) -> List[Habitacion]:
        """Habitaciones activas libres en [inicio, fin), ordenadas por número."""
        validar_rango(inicio, fin)

        ocupadas = {
            detalle.habitacion_id
            for detalle, _ in _detalles_superpuestos(db, inicio, fin).all()
        }

        query = db.query(Habitacion).filter(Habitacion.activo.is_(True))
        if categoria_id is not None:
            query = query.filter(Habitacion.categoria_id == categoria_id)

        return [h for h in query.order_by(Habitacion.numero).all() if h.id not in ocupadas]

    @staticmethod
    def calendario_habitacion(
        db: Session,
        habitacion_id: int,
        fecha_inicio: date,
        dias: int = 30,
    ) -> Dict:
        """
        Estado día por día: disponible, reservada (pendiente/confirmada),
        ocupada (check-in) o mantenimiento.
        """
        if dias < 1:
            raise InvalidRangeError("La cantidad de días debe ser al menos 1", dias=dias)

        habitacion = CatalogoService.obtener_habitacion(db, habitacion_id)

        desde = datetime.combine(fecha_inicio, time.min)
        hasta = desde + timedelta(days=dias)
        ocupaciones = (
            _detalles_superpuestos(db, desde, hasta)
            .filter(ReservaDetalle.habitacion_id == habitacion_id)
            .all()
        )

        calendario = []
        for offset in range(dias):
            dia_inicio = desde + timedelta(days=offset)
            dia_fin = dia_inicio + timedelta(days=1)

            reserva_activa = None
            for detalle, reserva in ocupaciones:
                if detalle.fecha_inicio < dia_fin and dia_inicio < detalle.fecha_fin:
                    reserva_activa = reserva
                    break

            estado = "disponible"
            if habitacion.estado == "mantenimiento":
                estado = "mantenimiento"
            elif reserva_activa:
                estado = "ocupada" if reserva_activa.estado == EstadoReserva.CHECK_IN else "reservada"

            calendario.append({
                "fecha": dia_inicio.date().isoformat(),
                "estado": estado,
                "reserva_id": reserva_activa.id if reserva_activa else None,
            })

        return {
            "habitacion": {"id": habitacion.id, "numero": habitacion.numero},
            "periodo": {
                "inicio": fecha_inicio,
                "fin": fecha_inicio + timedelta(days=dias - 1),
                "dias": dias,
            },
            "calendario": calendario,
        }
