"""
Cupos de servicios por fecha.

El cupo de un servicio en una fecha concreta es el cupo_maximo de su plantilla
semanal menos la suma de cantidades contratadas para (servicio, fecha_servicio)
en estado pendiente, confirmado o completado. Los cancelados nunca ocupan cupo.
El valor se calcula siempre contra la base, nunca se cachea.
"""
from datetime import date, time, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.servicios import (
    DiaSemana, ServicioContratado, ServicioDisponibilidad, ESTADOS_QUE_OCUPAN_CUPO
)
from services.catalogo import CatalogoService
from services.errors import InvalidRangeError, SlotMismatchError


class CuposService:

    @staticmethod
    def cupos_ocupados(db: Session, servicio_id: int, fecha: date) -> int:
        total = (
            db.query(func.coalesce(func.sum(ServicioContratado.cantidad), 0))
            .filter(
                ServicioContratado.servicio_id == servicio_id,
                ServicioContratado.fecha_servicio == fecha,
                ServicioContratado.activo.is_(True),
                ServicioContratado.estado.in_(ESTADOS_QUE_OCUPAN_CUPO),
            )
            .scalar()
        )
        return int(total or 0)

    @staticmethod
    def validar_dia(disponibilidad: ServicioDisponibilidad, fecha: date) -> None:
        dia = DiaSemana.desde_fecha(fecha)
        if dia != disponibilidad.dia_semana:
            raise SlotMismatchError(
                f"La fecha {fecha} es {dia.value}; la disponibilidad {disponibilidad.id} "
                f"corresponde a {disponibilidad.dia_semana.value}",
                disponibilidad_id=disponibilidad.id,
                fecha=fecha.isoformat(),
            )

    @staticmethod
    def validar_horario(disponibilidad: ServicioDisponibilidad, hora: Optional[time]) -> time:
        """
        Devuelve la hora efectiva del turno.
        Horario fijo: debe coincidir con hora_inicio. Rango: hora_inicio <= hora <= hora_fin
        (sin hora_fin el rango queda abierto). Sin hora se toma hora_inicio.
        """
        if hora is None:
            return disponibilidad.hora_inicio

        if disponibilidad.hora_fija:
            valido = hora == disponibilidad.hora_inicio
        else:
            valido = hora >= disponibilidad.hora_inicio and (
                disponibilidad.hora_fin is None or hora <= disponibilidad.hora_fin
            )

        if not valido:
            raise SlotMismatchError(
                f"El horario {hora.isoformat()} no corresponde a la disponibilidad {disponibilidad.id}",
                disponibilidad_id=disponibilidad.id,
                hora=hora.isoformat(),
                hora_inicio=disponibilidad.hora_inicio.isoformat(),
                hora_fin=disponibilidad.hora_fin.isoformat() if disponibilidad.hora_fin else None,
            )
        return hora

    @staticmethod
    def cupos_restantes(db: Session, servicio_id: int, disponibilidad_id: int, fecha: date) -> int:
        """
        Raises:
            NotFoundError: la plantilla no existe, está inactiva o es de otro servicio
            SlotMismatchError: el día de la semana de fecha no es el de la plantilla
        """
        disponibilidad = CatalogoService.obtener_disponibilidad(db, disponibilidad_id, servicio_id)
        CuposService.validar_dia(disponibilidad, fecha)

        ocupados = CuposService.cupos_ocupados(db, servicio_id, fecha)
        return max(disponibilidad.cupo_maximo - ocupados, 0)

    @staticmethod
    def disponibilidad_con_cupos(
        db: Session, servicio_id: int, fecha_inicio: date, fecha_fin: date
    ) -> List[Dict]:
        """Por cada día del rango (inclusive) y cada plantilla activa de ese día."""
        if fecha_fin < fecha_inicio:
            raise InvalidRangeError(
                "La fecha de fin no puede ser anterior a la de inicio",
                fecha_inicio=fecha_inicio.isoformat(),
                fecha_fin=fecha_fin.isoformat(),
            )
        CatalogoService.obtener_servicio(db, servicio_id)

        plantillas = (
            db.query(ServicioDisponibilidad)
            .filter(
                ServicioDisponibilidad.servicio_id == servicio_id,
                ServicioDisponibilidad.activo.is_(True),
            )
            .order_by(ServicioDisponibilidad.hora_inicio)
            .all()
        )

        resultado = []
        fecha = fecha_inicio
        while fecha <= fecha_fin:
            dia = DiaSemana.desde_fecha(fecha)
            del_dia = [p for p in plantillas if p.dia_semana == dia]
            if del_dia:
                ocupados = CuposService.cupos_ocupados(db, servicio_id, fecha)
                for plantilla in del_dia:
                    resultado.append({
                        "fecha": fecha,
                        "disponibilidad_id": plantilla.id,
                        "dia_semana": dia.value,
                        "hora_inicio": plantilla.hora_inicio,
                        "hora_fin": plantilla.hora_fin,
                        "hora_fija": plantilla.hora_fija,
                        "cupo_maximo": plantilla.cupo_maximo,
                        "cupos_ocupados": ocupados,
                        "cupos_restantes": max(plantilla.cupo_maximo - ocupados, 0),
                    })
            fecha += timedelta(days=1)
        return resultado
