"""
Tests de la API HTTP: códigos de estado y mapeo de errores de negocio
"""
from utils.locks import registro_bloqueos, clave_habitacion
from utils import locks


def _payload_reserva(cliente, habitacion_id, inicio="2030-01-06T14:00:00", fin="2030-01-09T10:00:00"):
    return {
        "cliente_id": cliente,
        "detalles": [{"habitacion_id": habitacion_id, "fecha_inicio": inicio, "fecha_fin": fin}],
        "usuario": "recepcion",
    }


def test_flujo_completo_de_reserva(api, habitaciones, cliente):
    response = api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"]))
    assert response.status_code == 201
    reserva = response.json()
    assert reserva["estado"] == "pendiente"
    assert len(reserva["detalles"]) == 1

    rid = reserva["id"]
    assert api.post(f"/reservas/{rid}/confirmar").json()["estado"] == "confirmada"
    assert api.post(f"/reservas/{rid}/check-in").json()["estado"] == "check_in"

    registros = api.get(f"/reservas/{rid}/checkin-checkout").json()
    assert len(registros) == 1

    response = api.post(
        f"/checkin-checkout/{registros[0]['id']}/check-out",
        params={"finalizar_reserva": "true"},
    )
    assert response.status_code == 200
    cuerpo = response.json()
    assert cuerpo["registro"]["estado"] == "realizado"
    assert cuerpo["pendientes"] == 0
    assert cuerpo["reserva"]["estado"] == "finalizada"

    historial = api.get(f"/reservas/{rid}/historial").json()
    assert [h["estado_nuevo"] for h in historial] == ["pendiente", "confirmada", "check_in", "finalizada"]
    assert historial[0]["usuario"] == "recepcion"


def test_habitacion_ocupada_responde_409(api, habitaciones, cliente):
    assert api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"])).status_code == 201

    response = api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"]))
    assert response.status_code == 409
    assert response.json()["error"] == "room_unavailable"


def test_rango_invalido_responde_422(api, habitaciones, cliente):
    response = api.post(
        "/reservas",
        json=_payload_reserva(cliente, habitaciones["101"], inicio="2030-01-09T00:00:00", fin="2030-01-06T00:00:00"),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_range"


def test_reserva_inexistente_responde_404(api):
    response = api.post("/reservas/999/confirmar")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_transicion_invalida_responde_409(api, habitaciones, cliente):
    rid = api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"])).json()["id"]

    response = api.post(f"/reservas/{rid}/check-in")
    assert response.status_code == 409
    assert response.json()["error"] == "invalid_transition"
    assert response.json()["context"]["estado"] == "pendiente"


def test_completar_con_check_out_pendiente_responde_422(api, habitaciones, cliente):
    rid = api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"])).json()["id"]
    api.post(f"/reservas/{rid}/confirmar")
    api.post(f"/reservas/{rid}/check-in")

    response = api.post(f"/reservas/{rid}/completar")
    assert response.status_code == 422
    assert response.json()["error"] == "incomplete_checkout"


def test_check_out_repetido_responde_409(api, habitaciones, cliente):
    rid = api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"])).json()["id"]
    api.post(f"/reservas/{rid}/confirmar")
    api.post(f"/reservas/{rid}/check-in")
    registro_id = api.get(f"/reservas/{rid}/checkin-checkout").json()[0]["id"]

    assert api.post(f"/checkin-checkout/{registro_id}/check-out").status_code == 200
    response = api.post(f"/checkin-checkout/{registro_id}/check-out")
    assert response.status_code == 409
    assert response.json()["error"] == "already_checked_out"


def test_cancelar_con_motivo(api, habitaciones, cliente):
    rid = api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"])).json()["id"]

    response = api.post(f"/reservas/{rid}/cancelar", json={"usuario": "gerencia", "motivo": "No show"})
    assert response.status_code == 200
    assert response.json()["estado"] == "cancelada"
    assert response.json()["detalles"][0]["activo"] is False

    assert api.post(f"/reservas/{rid}/cancelar").status_code == 409


def test_contratar_servicio_y_cupos(api, spa, cliente):
    payload = {
        "servicio_id": spa["servicio_id"],
        "cliente_id": cliente,
        "disponibilidad_id": spa["disponibilidad_id"],
        "fecha_servicio": "2030-01-07",
        "cantidad": 3,
    }
    response = api.post("/servicios-contratados", json=payload)
    assert response.status_code == 201
    contrato = response.json()
    assert contrato["estado"] == "pendiente"
    assert contrato["hora_servicio"] == "09:00:00"

    cupos = api.get("/servicios-contratados/cupos", params={
        "servicio_id": spa["servicio_id"],
        "disponibilidad_id": spa["disponibilidad_id"],
        "fecha": "2030-01-07",
    })
    assert cupos.status_code == 200
    assert cupos.json()["cupos_restantes"] == 1

    response = api.post("/servicios-contratados", json={**payload, "cantidad": 2})
    assert response.status_code == 409
    assert response.json()["error"] == "capacity_exceeded"

    response = api.post(f"/servicios-contratados/{contrato['id']}/confirmar")
    assert response.json()["estado"] == "confirmado"
    assert api.post(f"/servicios-contratados/{contrato['id']}/reembolsar").status_code == 404


def test_contratar_cantidad_cero_responde_422(api, spa, cliente):
    response = api.post("/servicios-contratados", json={
        "servicio_id": spa["servicio_id"],
        "cliente_id": cliente,
        "disponibilidad_id": spa["disponibilidad_id"],
        "fecha_servicio": "2030-01-07",
        "cantidad": 0,
    })
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_quantity"


def test_cupos_dia_incorrecto_responde_422(api, spa):
    response = api.get("/servicios-contratados/cupos", params={
        "servicio_id": spa["servicio_id"],
        "disponibilidad_id": spa["disponibilidad_id"],
        "fecha": "2030-01-08",
    })
    assert response.status_code == 422
    assert response.json()["error"] == "slot_mismatch"


def test_verificar_habitacion(api, habitaciones, cliente):
    api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"]))

    ocupada = api.get(f"/disponibilidad/habitaciones/{habitaciones['101']}", params={
        "fecha_inicio": "2030-01-07T00:00:00",
        "fecha_fin": "2030-01-08T00:00:00",
    })
    libre = api.get(f"/disponibilidad/habitaciones/{habitaciones['101']}", params={
        "fecha_inicio": "2030-01-09T10:00:00",
        "fecha_fin": "2030-01-12T10:00:00",
    })
    assert ocupada.json()["disponible"] is False
    assert libre.json()["disponible"] is True

    listado = api.get("/disponibilidad/habitaciones", params={
        "fecha_inicio": "2030-01-07T00:00:00",
        "fecha_fin": "2030-01-08T00:00:00",
    })
    assert [h["numero"] for h in listado.json()] == ["102"]


def test_pagos(api, habitaciones, cliente):
    rid = api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"])).json()["id"]

    response = api.post("/pagos", json={"reserva_id": rid, "monto": "120.00", "metodo": "efectivo"})
    assert response.status_code == 201
    pago_id = response.json()["id"]

    assert api.post(f"/pagos/{pago_id}/completar").json()["estado"] == "completado"
    assert api.post(f"/pagos/{pago_id}/rechazar").status_code == 409
    assert len(api.get(f"/reservas/{rid}/pagos").json()) == 1

    response = api.post("/pagos", json={"reserva_id": rid, "monto": "0", "metodo": "efectivo"})
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_amount"


def test_contencion_responde_409_con_retry_after(api, habitaciones, cliente, monkeypatch):
    monkeypatch.setattr(locks, "LOCK_TIMEOUT_SECONDS", 0.1)

    with registro_bloqueos.retener([clave_habitacion(habitaciones["101"])], timeout=1):
        response = api.post("/reservas", json=_payload_reserva(cliente, habitaciones["101"]))

    assert response.status_code == 409
    assert response.json()["error"] == "lock_conflict"
    assert response.headers["Retry-After"] == "1"
