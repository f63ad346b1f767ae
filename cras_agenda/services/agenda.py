"""
Disponibilidade de horários por entrevistador e dia.

A agenda de um entrevistador é uma lista fixa de horários locais ("HH:MM") e
os dias da semana em que ele atende. Cada horário de um dia é:

- ocupado: existe agendamento não cancelado exatamente nesse instante;
- bloqueado: existe bloqueio nesse instante;
- indisponivel: fim de semana ou dia fora de `dias_atendimento`;
- livre: caso contrário.

Agendamento tem precedência sobre bloqueio, que tem precedência sobre dia
indisponível. Horários passados continuam com o status acima e só recebem
`passado=True`.
"""
from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from cras_agenda.core.errors import BusinessError, SlotBlockedError, SlotTakenError
from cras_agenda.models.appointment import Appointment, AppointmentStatus
from cras_agenda.models.blocked_slot import BlockedSlot
from cras_agenda.models.user import User
from cras_agenda.services.access import can_manage_entrevistador, get_entrevistador_or_404
from cras_agenda.utils.tz import (
    LOCAL_TZ,
    combine_local_to_utc,
    ensure_aware_utc,
    format_datetime_br,
    is_weekend,
    js_weekday,
    local_day_bounds_utc,
    to_local,
)
from cras_agenda.utils.validators import validar_horario

WEEKEND_MESSAGE = "Não é permitido agendar para sábado ou domingo."


class SlotStatus(str, enum.Enum):
    LIVRE = "livre"
    OCUPADO = "ocupado"
    BLOQUEADO = "bloqueado"
    INDISPONIVEL = "indisponivel"


@dataclass
class Slot:
    horario: str
    inicio: datetime
    status: SlotStatus
    passado: bool = False
    appointment: Any = None
    blocked: Any = None


@dataclass
class DayAgenda:
    data: date
    dia_atendimento: bool
    slots: list[Slot] = field(default_factory=list)

    def contagem(self) -> dict[str, int]:
        counts = {s.value: 0 for s in SlotStatus}
        for slot in self.slots:
            counts[slot.status.value] += 1
        return counts

    def livres(self, incluir_passados: bool = False) -> list[str]:
        return [
            s.horario
            for s in self.slots
            if s.status == SlotStatus.LIVRE and (incluir_passados or not s.passado)
        ]


def parse_horario(horario: str) -> time:
    hh, mm = horario.split(":")
    return time(int(hh), int(mm))


def normalize_horarios(horarios: Iterable[str]) -> list[str]:
    """Remove duplicados e valores fora do padrão HH:MM; devolve em ordem."""
    return sorted({h for h in horarios if validar_horario(h)})


def is_dia_atendimento(day: date, dias_atendimento: Iterable[int]) -> bool:
    return not is_weekend(day) and js_weekday(day) in set(dias_atendimento)


def _is_active(appointment: Any) -> bool:
    return appointment.status != AppointmentStatus.CANCELADO


def build_day_agenda(
    day: date,
    horarios: Sequence[str],
    dias_atendimento: Iterable[int],
    appointments: Iterable[Any],
    blocked: Iterable[Any],
    now: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> DayAgenda:
    """
    Monta os horários de `day` a partir da agenda configurada.

    `appointments` e `blocked` só precisam expor `.data` (datetime aware) e,
    para agendamentos, `.status`. O casamento é pelo instante exato em UTC.
    Agendamentos ativos fora da grade configurada também aparecem, como ocupados.
    """
    tz = tz or LOCAL_TZ
    now = ensure_aware_utc(now) if now else datetime.now(UTC)
    atende = is_dia_atendimento(day, dias_atendimento)

    by_instant: dict[datetime, Any] = {}
    for appt in appointments:
        if _is_active(appt):
            by_instant.setdefault(ensure_aware_utc(appt.data), appt)
    blocked_by_instant = {ensure_aware_utc(b.data): b for b in blocked}

    grade = {combine_local_to_utc(day, parse_horario(h), tz): h for h in normalize_horarios(horarios)}
    for instant in by_instant:
        local = to_local(instant, tz)
        if local.date() == day and instant not in grade:
            grade[instant] = local.strftime("%H:%M")

    slots: list[Slot] = []
    for instant in sorted(grade):
        appt = by_instant.get(instant)
        block = blocked_by_instant.get(instant)
        if appt is not None:
            status = SlotStatus.OCUPADO
        elif block is not None:
            status = SlotStatus.BLOQUEADO
        elif not atende:
            status = SlotStatus.INDISPONIVEL
        else:
            status = SlotStatus.LIVRE
        slots.append(
            Slot(
                horario=grade[instant],
                inicio=instant,
                status=status,
                passado=instant < now,
                appointment=appt,
                blocked=block if appt is None else None,
            )
        )

    return DayAgenda(data=day, dia_atendimento=atende, slots=slots)


def _find_active_appointment(
    db: Session, entrevistador_id: int, when_utc: datetime, ignore_id: int | None
) -> Appointment | None:
    q = db.query(Appointment).filter(
        Appointment.entrevistador_id == entrevistador_id,
        Appointment.data == when_utc,
        Appointment.status != AppointmentStatus.CANCELADO,
    )
    if ignore_id is not None:
        q = q.filter(Appointment.id != ignore_id)
    return q.first()


def find_block(db: Session, entrevistador_id: int, when_utc: datetime) -> BlockedSlot | None:
    return (
        db.query(BlockedSlot)
        .filter(
            BlockedSlot.entrevistador_id == entrevistador_id,
            BlockedSlot.data == when_utc,
        )
        .first()
    )


def check_slot(
    db: Session,
    entrevistador: User,
    when_utc: datetime,
    ignore_appointment_id: int | None = None,
) -> None:
    """Levanta BusinessError se o horário não pode receber um agendamento."""
    when_utc = ensure_aware_utc(when_utc)
    local = to_local(when_utc)
    if is_weekend(local.date()):
        raise BusinessError(WEEKEND_MESSAGE)
    if js_weekday(local.date()) not in set(entrevistador.dias_atendimento or []):
        raise BusinessError("O entrevistador não atende neste dia da semana.")
    horario = local.strftime("%H:%M")
    if local.second or local.microsecond or horario not in set(
        entrevistador.horarios_disponiveis or []
    ):
        raise BusinessError(
            f"Horário {horario} não faz parte da agenda do entrevistador."
        )

    label = format_datetime_br(when_utc)
    if find_block(db, entrevistador.id, when_utc):
        raise SlotBlockedError(label)
    if _find_active_appointment(db, entrevistador.id, when_utc, ignore_appointment_id):
        raise SlotTakenError(label)


def load_day_agenda(
    db: Session, entrevistador: User, day: date, now: datetime | None = None
) -> DayAgenda:
    start_utc, end_utc = local_day_bounds_utc(day)
    appointments = (
        db.query(Appointment)
        .filter(
            Appointment.entrevistador_id == entrevistador.id,
            Appointment.data >= start_utc,
            Appointment.data < end_utc,
            Appointment.status != AppointmentStatus.CANCELADO,
        )
        .all()
    )
    blocked = (
        db.query(BlockedSlot)
        .filter(
            BlockedSlot.entrevistador_id == entrevistador.id,
            BlockedSlot.data >= start_utc,
            BlockedSlot.data < end_utc,
        )
        .all()
    )
    return build_day_agenda(
        day,
        entrevistador.horarios_disponiveis or [],
        entrevistador.dias_atendimento or [],
        appointments,
        blocked,
        now=now,
    )


def get_day_agenda(
    db: Session, user: User, entrevistador_id: int, day: date, now: datetime | None = None
) -> DayAgenda:
    """Agenda do dia, respeitando o escopo do usuário (404 inexistente, 403 outro CRAS)."""
    entrevistador = get_entrevistador_or_404(db, entrevistador_id)
    if not can_manage_entrevistador(user, entrevistador):
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            "Você não tem permissão para acessar agendas de outro CRAS",
        )
    return load_day_agenda(db, entrevistador, day, now=now)


def free_slots(
    db: Session, user: User, entrevistador_id: int, day: date, now: datetime | None = None
) -> list[str]:
    """Horários livres e ainda não passados do dia."""
    return get_day_agenda(db, user, entrevistador_id, day, now=now).livres()
