from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel

from cras_agenda.models.appointment import AppointmentStatus, Motivo
from cras_agenda.services.agenda import SlotStatus


class SlotAppointment(BaseModel):
    id: int
    pessoa: str
    motivo: Motivo
    status: AppointmentStatus


class SlotOut(BaseModel):
    horario: str
    inicio: datetime
    status: SlotStatus
    passado: bool
    appointment: SlotAppointment | None = None
    blocked_slot_id: int | None = None
    blocked_motivo: str | None = None


class DayAgendaOut(BaseModel):
    entrevistador_id: int
    data: date
    dia_atendimento: bool
    slots: list[SlotOut]
    contagem: dict[str, int]


class FreeSlotsOut(BaseModel):
    entrevistador_id: int
    data: date
    horarios: list[str]
