import os
import sys
import tempfile
from datetime import time
from decimal import Decimal

# La configuración se lee al importar config: definir el entorno antes de cualquier import del proyecto
_TMP_DIR = tempfile.mkdtemp(prefix="reservas_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'reservas_test.db')}"
os.environ["LOG_FILE"] = os.path.join(_TMP_DIR, "reservas_test.log")
os.environ["RATE_LIMIT_DEFAULT"] = "100000/minute"
os.environ["LOCK_TIMEOUT_SECONDS"] = "5"

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from database.conexion import Base, engine, SessionLocal
import models  # noqa: F401
from models.cliente import Cliente
from models.habitacion import Habitacion
from models.servicios import Servicio, ServicioDisponibilidad, TipoServicio, DiaSemana


@pytest.fixture(autouse=True)
def esquema_limpio():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def habitaciones(db):
    h101 = Habitacion(numero="101", capacidad=2, estado="disponible", activo=True)
    h102 = Habitacion(numero="102", capacidad=3, estado="disponible", activo=True)
    db.add_all([h101, h102])
    db.commit()
    return {"101": h101.id, "102": h102.id}


@pytest.fixture
def cliente(db):
    nuevo = Cliente(
        nombre="Ana",
        apellido="Pérez",
        email="ana@example.com",
        tipo_identificacion="DNI",
        numero_identificacion="30111222",
        activo=True,
    )
    db.add(nuevo)
    db.commit()
    return nuevo.id


@pytest.fixture
def spa(db):
    """Spa pago, lunes desde las 09:00 hasta las 13:00, cupo 4."""
    servicio = Servicio(nombre="Spa", tipo=TipoServicio.PAGO, precio=Decimal("50.00"), disponible=True)
    db.add(servicio)
    db.flush()
    disponibilidad = ServicioDisponibilidad(
        servicio_id=servicio.id,
        dia_semana=DiaSemana.LUNES,
        hora_inicio=time(9, 0),
        hora_fin=time(13, 0),
        cupo_maximo=4,
        hora_fija=False,
        activo=True,
    )
    db.add(disponibilidad)
    db.commit()
    return {"servicio_id": servicio.id, "disponibilidad_id": disponibilidad.id}


@pytest.fixture
def excursion(db):
    """Excursión gratuita, lunes a las 08:00 en punto, cupo 2."""
    servicio = Servicio(nombre="Excursión", tipo=TipoServicio.GRATUITO, precio=Decimal("0"), disponible=True)
    db.add(servicio)
    db.flush()
    disponibilidad = ServicioDisponibilidad(
        servicio_id=servicio.id,
        dia_semana=DiaSemana.LUNES,
        hora_inicio=time(8, 0),
        hora_fin=None,
        cupo_maximo=2,
        hora_fija=True,
        activo=True,
    )
    db.add(disponibilidad)
    db.commit()
    return {"servicio_id": servicio.id, "disponibilidad_id": disponibilidad.id}


@pytest.fixture
def api():
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client
