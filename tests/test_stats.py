from datetime import date

from fastapi import status

from cras_agenda.models.appointment import AppointmentStatus
from cras_agenda.services.stats import bucket_stats, period_bounds
from cras_agenda.utils.tz import UTC
from helpers import OTHER_CPF, slot_utc


def test_monthly_buckets_by_week():
    items = [
        (slot_utc(date(2025, 3, 1), "09:00"), AppointmentStatus.REALIZADO),
        (slot_utc(date(2025, 3, 7), "09:00"), AppointmentStatus.AUSENTE),
        (slot_utc(date(2025, 3, 8), "09:00"), AppointmentStatus.REALIZADO),
        (slot_utc(date(2025, 3, 31), "16:30"), AppointmentStatus.AGENDADO),
        (slot_utc(date(2025, 3, 10), "09:00"), AppointmentStatus.CANCELADO),
        (slot_utc(date(2025, 3, 11), "09:00"), AppointmentStatus.REAGENDAR),
    ]
    buckets, totals = bucket_stats(items, "mensal")

    assert [b.name for b in buckets] == ["Sem 1", "Sem 2", "Sem 3", "Sem 4", "Sem 5"]
    assert (buckets[0].realizados, buckets[0].ausentes) == (1, 1)
    assert buckets[1].realizados == 1
    assert buckets[4].agendados == 1
    assert totals.realizados == 2
    assert totals.ausentes == 1
    assert totals.agendados == 1
    assert totals.total == 4


def test_yearly_buckets_use_local_month():
    # 31/01 21:30 local = 01/02 00:30 UTC, conta em janeiro
    items = [
        (slot_utc(date(2025, 1, 31), "21:30"), AppointmentStatus.REALIZADO),
        (slot_utc(date(2025, 12, 2), "09:00"), AppointmentStatus.AUSENTE),
    ]
    buckets, totals = bucket_stats(items, "anual")

    assert len(buckets) == 12
    assert buckets[0].name == "Jan"
    assert buckets[0].realizados == 1
    assert buckets[1].realizados == 0
    assert buckets[11].name == "Dez"
    assert buckets[11].ausentes == 1
    assert totals.total == 2


def test_period_bounds():
    start, end = period_bounds("mensal", 2025, 12)
    assert start.astimezone(UTC).isoformat() == "2025-12-01T03:00:00+00:00"
    assert end.astimezone(UTC).isoformat() == "2026-01-01T03:00:00+00:00"

    start, end = period_bounds("anual", 2025, None)
    assert start.isoformat() == "2025-01-01T03:00:00+00:00"
    assert end.isoformat() == "2026-01-01T03:00:00+00:00"


def _seed(make_appointment, entrevistador, entrevistador_b):
    make_appointment(entrevistador, slot_utc(date(2024, 3, 4), "09:00"), status=AppointmentStatus.REALIZADO)
    make_appointment(entrevistador, slot_utc(date(2024, 3, 5), "09:00"), status=AppointmentStatus.AUSENTE)
    make_appointment(entrevistador, slot_utc(date(2024, 7, 1), "09:00"))
    make_appointment(entrevistador, slot_utc(date(2024, 7, 2), "09:00"), status=AppointmentStatus.CANCELADO)
    make_appointment(
        entrevistador_b,
        slot_utc(date(2024, 3, 4), "09:00"),
        status=AppointmentStatus.REALIZADO,
        cpf=OTHER_CPF,
    )


def test_dashboard_admin_yearly(
    client, admin_user, entrevistador, entrevistador_b, login, make_appointment
):
    _seed(make_appointment, entrevistador, entrevistador_b)
    headers = login("A001")

    response = client.get("/api/v1/stats/dashboard?view_mode=anual&year=2024", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["view_mode"] == "anual"
    assert data["month"] is None
    assert data["stats"] == {"realizados": 2, "ausentes": 1, "agendados": 1, "total": 4}
    assert data["chart_data"][2] == {"name": "Mar", "realizados": 2, "ausentes": 1, "agendados": 0}

    by_cras = client.get(
        f"/api/v1/stats/dashboard?year=2024&cras_id={entrevistador_b.cras_id}", headers=headers
    ).json()
    assert by_cras["stats"]["total"] == 1


def test_dashboard_monthly(client, admin_user, entrevistador, entrevistador_b, login, make_appointment):
    _seed(make_appointment, entrevistador, entrevistador_b)
    response = client.get(
        f"/api/v1/stats/dashboard?view_mode=mensal&year=2024&month=3&entrevistador_id={entrevistador.id}",
        headers=login("A001"),
    )
    data = response.json()
    assert data["month"] == 3
    assert data["chart_data"][0] == {"name": "Sem 1", "realizados": 1, "ausentes": 1, "agendados": 0}
    assert data["stats"]["total"] == 2


def test_dashboard_entrevistador_sees_only_own(
    client, entrevistador, entrevistador_b, login, make_appointment
):
    _seed(make_appointment, entrevistador, entrevistador_b)
    response = client.get(
        f"/api/v1/stats/dashboard?year=2024&entrevistador_id={entrevistador_b.id}",
        headers=login("E001"),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["stats"]["total"] == 3


def test_dashboard_forbidden_for_recepcao(client, recepcao, login):
    response = client.get("/api/v1/stats/dashboard", headers=login("R001"))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_dashboard_invalid_month(client, admin_user, login):
    response = client.get(
        "/api/v1/stats/dashboard?view_mode=mensal&month=13", headers=login("A001")
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
