from datetime import date, time, timedelta

import pytest

from services.cupos_service import CuposService
from services.errors import NotFoundError, SlotMismatchError, InvalidRangeError
from services.servicio_contratado_service import ServicioContratadoService
from services.catalogo import CatalogoService

# 2030-01-07 es lunes
LUNES = date(2030, 1, 7)


def test_cupo_completo_sin_contrataciones(db, spa):
    assert CuposService.cupos_restantes(db, spa["servicio_id"], spa["disponibilidad_id"], LUNES) == 4


def test_cantidades_se_suman(db, spa, cliente):
    ServicioContratadoService.contratar(db, spa["servicio_id"], cliente, 3, spa["disponibilidad_id"], LUNES)

    assert CuposService.cupos_restantes(db, spa["servicio_id"], spa["disponibilidad_id"], LUNES) == 1
    # Otro lunes no comparte cupo
    assert CuposService.cupos_restantes(
        db, spa["servicio_id"], spa["disponibilidad_id"], LUNES + timedelta(days=7)
    ) == 4


def test_cancelados_liberan_cupo_y_completados_lo_ocupan(db, spa, cliente):
    a = ServicioContratadoService.contratar(db, spa["servicio_id"], cliente, 2, spa["disponibilidad_id"], LUNES)
    b = ServicioContratadoService.contratar(db, spa["servicio_id"], cliente, 1, spa["disponibilidad_id"], LUNES)

    ServicioContratadoService.cancelar(db, a.id)
    ServicioContratadoService.confirmar(db, b.id)
    ServicioContratadoService.completar(db, b.id)

    assert CuposService.cupos_restantes(db, spa["servicio_id"], spa["disponibilidad_id"], LUNES) == 3


def test_dia_de_semana_distinto(db, spa):
    with pytest.raises(SlotMismatchError):
        CuposService.cupos_restantes(db, spa["servicio_id"], spa["disponibilidad_id"], LUNES + timedelta(days=1))


def test_plantilla_de_otro_servicio(db, spa, excursion):
    with pytest.raises(NotFoundError):
        CuposService.cupos_restantes(db, spa["servicio_id"], excursion["disponibilidad_id"], LUNES)


def test_validar_horario_rango(db, spa):
    plantilla = CatalogoService.obtener_disponibilidad(db, spa["disponibilidad_id"])
    assert CuposService.validar_horario(plantilla, None) == time(9, 0)
    assert CuposService.validar_horario(plantilla, time(13, 0)) == time(13, 0)
    with pytest.raises(SlotMismatchError):
        CuposService.validar_horario(plantilla, time(8, 59))
    with pytest.raises(SlotMismatchError):
        CuposService.validar_horario(plantilla, time(13, 1))


def test_validar_horario_fijo(db, excursion):
    plantilla = CatalogoService.obtener_disponibilidad(db, excursion["disponibilidad_id"])
    assert CuposService.validar_horario(plantilla, time(8, 0)) == time(8, 0)
    with pytest.raises(SlotMismatchError):
        CuposService.validar_horario(plantilla, time(8, 30))


def test_disponibilidad_con_cupos_por_rango(db, spa, cliente):
    ServicioContratadoService.contratar(db, spa["servicio_id"], cliente, 1, spa["disponibilidad_id"], LUNES)

    filas = CuposService.disponibilidad_con_cupos(db, spa["servicio_id"], LUNES, LUNES + timedelta(days=13))

    assert [f["fecha"] for f in filas] == [LUNES, LUNES + timedelta(days=7)]
    assert filas[0]["cupos_ocupados"] == 1
    assert filas[0]["cupos_restantes"] == 3
    assert filas[1]["cupos_restantes"] == 4


def test_disponibilidad_con_cupos_rango_invertido(db, spa):
    with pytest.raises(InvalidRangeError):
        CuposService.disponibilidad_con_cupos(db, spa["servicio_id"], LUNES, date(2029, 1, 1))
