from datetime import UTC, date, datetime, timedelta
from types import SimpleNamespace

from fastapi import status

from cras_agenda.models.appointment import AppointmentStatus
from cras_agenda.models.blocked_slot import BlockedSlot
from cras_agenda.services.agenda import (
    SlotStatus,
    build_day_agenda,
    is_dia_atendimento,
    normalize_horarios,
)
from helpers import next_weekday, slot_utc

HORARIOS = ["08:30", "09:00", "09:30"]
SEG_SEX = [1, 2, 3, 4, 5]
MONDAY = date(2025, 5, 5)
LONG_AGO = datetime(2020, 1, 1, tzinfo=UTC)


def _appt(day, hhmm, status=AppointmentStatus.AGENDADO):
    return SimpleNamespace(data=slot_utc(day, hhmm), status=status)


def _block(day, hhmm):
    return SimpleNamespace(data=slot_utc(day, hhmm))


def _statuses(agenda):
    return {s.horario: s.status for s in agenda.slots}


def test_normalize_horarios_sorts_and_dedupes():
    assert normalize_horarios(["09:00", "08:30", "09:00", "9:30", "xx"]) == ["08:30", "09:00"]


def test_is_dia_atendimento():
    assert is_dia_atendimento(MONDAY, SEG_SEX) is True
    assert is_dia_atendimento(MONDAY, [2, 3]) is False
    # fim de semana nunca é dia de atendimento
    assert is_dia_atendimento(date(2025, 5, 10), [0, 6]) is False


def test_empty_day_is_all_free():
    agenda = build_day_agenda(MONDAY, HORARIOS, SEG_SEX, [], [], now=LONG_AGO)

    assert agenda.dia_atendimento is True
    assert [s.horario for s in agenda.slots] == HORARIOS
    assert all(s.status == SlotStatus.LIVRE for s in agenda.slots)
    assert agenda.livres() == HORARIOS


def test_appointment_wins_over_block():
    agenda = build_day_agenda(
        MONDAY,
        HORARIOS,
        SEG_SEX,
        [_appt(MONDAY, "08:30")],
        [_block(MONDAY, "08:30"), _block(MONDAY, "09:00")],
        now=LONG_AGO,
    )

    assert _statuses(agenda) == {
        "08:30": SlotStatus.OCUPADO,
        "09:00": SlotStatus.BLOQUEADO,
        "09:30": SlotStatus.LIVRE,
    }
    assert agenda.slots[0].blocked is None
    assert agenda.contagem() == {"livre": 1, "ocupado": 1, "bloqueado": 1, "indisponivel": 0}


def test_cancelled_appointment_frees_slot():
    agenda = build_day_agenda(
        MONDAY,
        HORARIOS,
        SEG_SEX,
        [_appt(MONDAY, "09:00", AppointmentStatus.CANCELADO)],
        [],
        now=LONG_AGO,
    )
    assert _statuses(agenda)["09:00"] == SlotStatus.LIVRE


def test_finished_appointments_still_occupy():
    agenda = build_day_agenda(
        MONDAY,
        HORARIOS,
        SEG_SEX,
        [
            _appt(MONDAY, "08:30", AppointmentStatus.REALIZADO),
            _appt(MONDAY, "09:00", AppointmentStatus.AUSENTE),
        ],
        [],
        now=LONG_AGO,
    )
    assert _statuses(agenda)["08:30"] == SlotStatus.OCUPADO
    assert _statuses(agenda)["09:00"] == SlotStatus.OCUPADO


def test_weekend_is_unavailable():
    saturday = date(2025, 5, 10)
    agenda = build_day_agenda(saturday, HORARIOS, SEG_SEX, [], [], now=LONG_AGO)

    assert agenda.dia_atendimento is False
    assert all(s.status == SlotStatus.INDISPONIVEL for s in agenda.slots)
    assert agenda.livres() == []


def test_day_outside_dias_atendimento_is_unavailable_but_blocks_show():
    agenda = build_day_agenda(
        MONDAY, HORARIOS, [2, 3], [], [_block(MONDAY, "09:30")], now=LONG_AGO
    )
    assert _statuses(agenda) == {
        "08:30": SlotStatus.INDISPONIVEL,
        "09:00": SlotStatus.INDISPONIVEL,
        "09:30": SlotStatus.BLOQUEADO,
    }


def test_past_slots_are_flagged_not_hidden():
    now = slot_utc(MONDAY, "09:00") + timedelta(minutes=1)
    agenda = build_day_agenda(MONDAY, HORARIOS, SEG_SEX, [], [], now=now)

    assert [s.passado for s in agenda.slots] == [True, True, False]
    assert all(s.status == SlotStatus.LIVRE for s in agenda.slots)
    assert agenda.livres() == ["09:30"]
    assert agenda.livres(incluir_passados=True) == HORARIOS


def test_appointment_outside_grid_is_listed():
    agenda = build_day_agenda(
        MONDAY, HORARIOS, SEG_SEX, [_appt(MONDAY, "15:00")], [], now=LONG_AGO
    )
    assert [s.horario for s in agenda.slots] == HORARIOS + ["15:00"]
    assert _statuses(agenda)["15:00"] == SlotStatus.OCUPADO


def test_appointment_from_other_day_is_ignored():
    tuesday = MONDAY + timedelta(days=1)
    agenda = build_day_agenda(
        MONDAY, HORARIOS, SEG_SEX, [_appt(tuesday, "08:30")], [], now=LONG_AGO
    )
    assert len(agenda.slots) == 3
    assert all(s.status == SlotStatus.LIVRE for s in agenda.slots)


def test_agenda_endpoint(client, db_session, entrevistador, login, make_appointment):
    day = next_weekday(0)
    appt = make_appointment(entrevistador, slot_utc(day, "09:00"), pessoa="João Souza")
    block = BlockedSlot(
        entrevistador_id=entrevistador.id,
        cras_id=entrevistador.cras_id,
        data=slot_utc(day, "10:00"),
        motivo="Reunião",
        created_by_id=entrevistador.id,
    )
    db_session.add(block)
    db_session.commit()

    headers = login("E001")
    response = client.get(
        f"/api/v1/agenda/{entrevistador.id}?data={day.isoformat()}", headers=headers
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["dia_atendimento"] is True
    slots = {s["horario"]: s for s in data["slots"]}
    assert len(slots) == 15
    assert slots["09:00"]["status"] == "ocupado"
    assert slots["09:00"]["appointment"]["id"] == appt.id
    assert slots["09:00"]["appointment"]["pessoa"] == "João Souza"
    assert slots["10:00"]["status"] == "bloqueado"
    assert slots["10:00"]["blocked_motivo"] == "Reunião"
    assert slots["08:30"]["status"] == "livre"
    assert data["contagem"] == {"livre": 13, "ocupado": 1, "bloqueado": 1, "indisponivel": 0}


def test_free_slots_endpoint(client, entrevistador, recepcao, login, make_appointment):
    day = next_weekday(1)
    make_appointment(entrevistador, slot_utc(day, "08:30"))

    response = client.get(
        f"/api/v1/agenda/{entrevistador.id}/livres?data={day.isoformat()}",
        headers=login("R001"),
    )

    assert response.status_code == status.HTTP_200_OK
    horarios = response.json()["horarios"]
    assert "08:30" not in horarios
    assert horarios[0] == "09:00"
    assert len(horarios) == 14


def test_free_slots_weekend_is_empty(client, entrevistador, login):
    saturday = next_weekday(5)
    response = client.get(
        f"/api/v1/agenda/{entrevistador.id}/livres?data={saturday.isoformat()}",
        headers=login("E001"),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["horarios"] == []


def test_agenda_other_cras_forbidden(client, entrevistador_b, recepcao, login):
    day = next_weekday(0)
    response = client.get(
        f"/api/v1/agenda/{entrevistador_b.id}?data={day.isoformat()}",
        headers=login("R001"),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_agenda_of_another_entrevistador_forbidden(client, entrevistador, entrevistador_b, login):
    day = next_weekday(0)
    response = client.get(
        f"/api/v1/agenda/{entrevistador_b.id}?data={day.isoformat()}",
        headers=login("E001"),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_agenda_unknown_entrevistador(client, admin_user, login):
    response = client.get(
        f"/api/v1/agenda/999?data={next_weekday(0).isoformat()}", headers=login("A001")
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
