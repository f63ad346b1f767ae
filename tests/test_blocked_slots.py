from fastapi import status

from cras_agenda.models.appointment import AppointmentStatus
from helpers import next_weekday, slot_iso, slot_utc


def test_entrevistador_blocks_own_slot(client, entrevistador, login):
    day = next_weekday(0)
    headers = login("E001")

    response = client.post(
        "/api/v1/blocked-slots",
        json={"data": slot_iso(day, "10:00"), "motivo": "Reunião de equipe"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["entrevistador_id"] == entrevistador.id
    assert data["cras_id"] == entrevistador.cras_id
    assert data["motivo"] == "Reunião de equipe"

    listed = client.get(f"/api/v1/blocked-slots?data={day.isoformat()}", headers=headers)
    assert [b["id"] for b in listed.json()] == [data["id"]]

    free = client.get(
        f"/api/v1/agenda/{entrevistador.id}/livres?data={day.isoformat()}", headers=headers
    ).json()["horarios"]
    assert "10:00" not in free


def test_block_twice_conflicts(client, entrevistador, login):
    day = next_weekday(0)
    headers = login("E001")
    payload = {"data": slot_iso(day, "10:00")}

    assert client.post("/api/v1/blocked-slots", json=payload, headers=headers).status_code == 201
    again = client.post("/api/v1/blocked-slots", json=payload, headers=headers)
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["code"] == "SLOT_BLOCKED"


def test_cannot_block_booked_slot(client, entrevistador, login, make_appointment):
    day = next_weekday(0)
    make_appointment(entrevistador, slot_utc(day, "10:00"))

    response = client.post(
        "/api/v1/blocked-slots", json={"data": slot_iso(day, "10:00")}, headers=login("E001")
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "SLOT_TAKEN"


def test_can_block_slot_of_cancelled_appointment(client, entrevistador, login, make_appointment):
    day = next_weekday(0)
    make_appointment(entrevistador, slot_utc(day, "10:00"), status=AppointmentStatus.CANCELADO)

    response = client.post(
        "/api/v1/blocked-slots", json={"data": slot_iso(day, "10:00")}, headers=login("E001")
    )
    assert response.status_code == status.HTTP_201_CREATED


def test_recepcao_blocks_for_own_cras_only(client, entrevistador, entrevistador_b, recepcao, login):
    day = next_weekday(1)
    headers = login("R001")

    own = client.post(
        "/api/v1/blocked-slots",
        json={"entrevistador_id": entrevistador.id, "data": slot_iso(day, "08:30")},
        headers=headers,
    )
    assert own.status_code == status.HTTP_201_CREATED
    assert own.json()["created_by_id"] == recepcao.id

    other = client.post(
        "/api/v1/blocked-slots",
        json={"entrevistador_id": entrevistador_b.id, "data": slot_iso(day, "08:30")},
        headers=headers,
    )
    assert other.status_code == status.HTTP_403_FORBIDDEN

    missing = client.post(
        "/api/v1/blocked-slots", json={"data": slot_iso(day, "08:30")}, headers=headers
    )
    assert missing.status_code == status.HTTP_400_BAD_REQUEST


def test_list_requires_entrevistador_for_recepcao(client, entrevistador, entrevistador_b, recepcao, login):
    headers = login("R001")
    assert client.get("/api/v1/blocked-slots", headers=headers).status_code == 400
    assert (
        client.get(f"/api/v1/blocked-slots?entrevistador_id={entrevistador_b.id}", headers=headers).status_code
        == status.HTTP_403_FORBIDDEN
    )
    assert (
        client.get(f"/api/v1/blocked-slots?entrevistador_id={entrevistador.id}", headers=headers).status_code
        == status.HTTP_200_OK
    )


def test_unblock(client, admin_user, entrevistador, login):
    headers = login("E001")
    created = client.post(
        "/api/v1/blocked-slots",
        json={"data": slot_iso(next_weekday(0), "10:00")},
        headers=headers,
    ).json()

    response = client.delete(f"/api/v1/blocked-slots/{created['id']}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/api/v1/blocked-slots", headers=headers).json() == []

    actions = {e["action"] for e in client.get("/api/v1/logs", headers=login("A001")).json()["results"]}
    assert {"bloquear_horario", "desbloquear_horario"} <= actions


def test_unblock_other_agenda_is_not_found(client, entrevistador, entrevistador_b, login):
    created = client.post(
        "/api/v1/blocked-slots",
        json={"data": slot_iso(next_weekday(0), "10:00")},
        headers=login("E002"),
    ).json()

    response = client.delete(f"/api/v1/blocked-slots/{created['id']}", headers=login("E001"))
    assert response.status_code == status.HTTP_404_NOT_FOUND
