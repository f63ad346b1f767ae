import csv
from datetime import date
from io import StringIO
from types import SimpleNamespace

from fastapi import status

from cras_agenda.models.appointment import AppointmentStatus, Motivo
from cras_agenda.services.export import BOM, CSV_HEADERS, appointments_csv
from helpers import OTHER_CPF, next_weekday, slot_utc


def _row(**overrides):
    data = dict(
        pessoa="Maria da Silva",
        cpf="52998224725",
        telefone1="41999998888",
        telefone2=None,
        motivo=Motivo.INCLUSAO,
        data=slot_utc(date(2025, 5, 5), "09:00"),
        status=AppointmentStatus.AGENDADO,
        entrevistador=SimpleNamespace(name="Ana Entrevistadora"),
        cras=SimpleNamespace(nome="CRAS Centro"),
        observacoes=None,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


def _parse(text):
    assert text.startswith(BOM)
    return list(csv.reader(StringIO(text[len(BOM):])))


def test_csv_formats_fields():
    rows = _parse(appointments_csv([_row()]))

    assert rows[0] == CSV_HEADERS
    assert rows[1] == [
        "Maria da Silva",
        "529.982.247-25",
        "(41) 99999-8888",
        "",
        "Inclusão",
        "05/05/2025",
        "09:00",
        "agendado",
        "Ana Entrevistadora",
        "CRAS Centro",
        "",
    ]


def test_csv_escapes_special_characters():
    text = appointments_csv(
        [_row(pessoa='Maria "Mara" Silva', observacoes="Trazer RG, CPF\ne comprovante")]
    )
    assert '"Maria ""Mara"" Silva"' in text
    rows = _parse(text)
    assert rows[1][0] == 'Maria "Mara" Silva'
    assert rows[1][-1] == "Trazer RG, CPF\ne comprovante"


def test_csv_empty_has_header_only():
    assert _parse(appointments_csv([])) == [CSV_HEADERS]


def test_export_endpoint(client, entrevistador, entrevistador_b, recepcao, login, make_appointment):
    day = next_weekday(0)
    make_appointment(entrevistador, slot_utc(day, "09:30"), pessoa="Segundo")
    make_appointment(entrevistador, slot_utc(day, "08:30"), pessoa="Primeiro", cpf=OTHER_CPF)
    make_appointment(entrevistador_b, slot_utc(day, "08:30"), pessoa="Outro CRAS")

    response = client.get("/api/v1/appointments/export.csv", headers=login("R001"))

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert response.content.startswith(b"\xef\xbb\xbf")
    rows = _parse(response.content.decode("utf-8"))
    assert [r[0] for r in rows[1:]] == ["Primeiro", "Segundo"]


def test_export_respects_filters(client, entrevistador, login, make_appointment):
    day = next_weekday(0)
    make_appointment(entrevistador, slot_utc(day, "09:30"), status=AppointmentStatus.REALIZADO)
    make_appointment(entrevistador, slot_utc(day, "08:30"), pessoa="Pendente", cpf=OTHER_CPF)

    response = client.get(
        "/api/v1/appointments/export.csv?status=agendado", headers=login("E001")
    )
    rows = _parse(response.content.decode("utf-8"))
    assert [r[0] for r in rows[1:]] == ["Pendente"]
