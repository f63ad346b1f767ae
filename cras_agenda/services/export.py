from __future__ import annotations

import csv
from collections.abc import Iterable
from io import StringIO

from cras_agenda.models.appointment import Appointment
from cras_agenda.utils.tz import to_local
from cras_agenda.utils.validators import formatar_cpf, formatar_telefone

BOM = "\ufeff"

CSV_HEADERS = [
    "Pessoa",
    "CPF",
    "Telefone 1",
    "Telefone 2",
    "Motivo",
    "Data",
    "Horário",
    "Status",
    "Entrevistador",
    "CRAS",
    "Observações",
]


def appointment_row(a: Appointment) -> list[str]:
    local = to_local(a.data)
    return [
        a.pessoa,
        formatar_cpf(a.cpf),
        formatar_telefone(a.telefone1),
        formatar_telefone(a.telefone2),
        a.motivo.value,
        local.strftime("%d/%m/%Y"),
        local.strftime("%H:%M"),
        a.status.value,
        a.entrevistador.name if a.entrevistador else "",
        a.cras.nome if a.cras else "",
        a.observacoes or "",
    ]


def appointments_csv(rows: Iterable[Appointment]) -> str:
    """CSV com BOM (Excel reconhece a acentuação); vírgulas, aspas e quebras de linha são escapadas."""
    buf = StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(CSV_HEADERS)
    for a in rows:
        writer.writerow(appointment_row(a))
    return BOM + buf.getvalue()
