from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime
from typing import Literal
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from cras_agenda.models.appointment import Appointment, AppointmentStatus
from cras_agenda.models.user import Role, User
from cras_agenda.schemas.stats import DashboardStatsOut, StatsBucket, StatsTotals
from cras_agenda.utils.tz import LOCAL_TZ, local_day_bounds_utc, to_local

ViewMode = Literal["mensal", "anual"]

MONTH_NAMES = ("Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez")
WEEKS_IN_MONTH = 5

_BUCKET_FIELD = {
    AppointmentStatus.REALIZADO: "realizados",
    AppointmentStatus.AUSENTE: "ausentes",
    AppointmentStatus.AGENDADO: "agendados",
}


def period_bounds(view_mode: ViewMode, year: int, month: int | None) -> tuple[datetime, datetime]:
    """Início e fim (exclusivo) do período local, em UTC."""
    if view_mode == "mensal":
        first = date(year, month or 1, 1)
        nxt = date(year + 1, 1, 1) if first.month == 12 else date(year, first.month + 1, 1)
    else:
        first, nxt = date(year, 1, 1), date(year + 1, 1, 1)
    return local_day_bounds_utc(first)[0], local_day_bounds_utc(nxt)[0]


def bucket_stats(
    items: Iterable[tuple[datetime, AppointmentStatus]],
    view_mode: ViewMode,
    tz: ZoneInfo | None = None,
) -> tuple[list[StatsBucket], StatsTotals]:
    """
    Agrupa (data, status) em semanas do mês ("Sem 1".."Sem 5", semana = ceil(dia/7))
    ou meses do ano ("Jan".."Dez"). Só realizado, ausente e agendado entram na conta.
    """
    if view_mode == "mensal":
        buckets = [StatsBucket(name=f"Sem {n}") for n in range(1, WEEKS_IN_MONTH + 1)]
    else:
        buckets = [StatsBucket(name=name) for name in MONTH_NAMES]
    totals = StatsTotals()

    for when, status in items:
        field = _BUCKET_FIELD.get(status)
        if field is None:
            continue
        local = to_local(when, tz or LOCAL_TZ)
        idx = math.ceil(local.day / 7) - 1 if view_mode == "mensal" else local.month - 1
        bucket = buckets[idx]
        setattr(bucket, field, getattr(bucket, field) + 1)
        setattr(totals, field, getattr(totals, field) + 1)

    totals.total = totals.realizados + totals.ausentes + totals.agendados
    return buckets, totals


def dashboard_stats(
    db: Session,
    user: User,
    *,
    view_mode: ViewMode,
    year: int,
    month: int | None,
    entrevistador_id: int | None = None,
    cras_id: int | None = None,
) -> DashboardStatsOut:
    if user.role == Role.ENTREVISTADOR:
        entrevistador_id, cras_id = user.id, None

    start_utc, end_utc = period_bounds(view_mode, year, month)
    q = db.query(Appointment.data, Appointment.status).filter(
        Appointment.data >= start_utc,
        Appointment.data < end_utc,
        Appointment.status.in_(list(_BUCKET_FIELD)),
    )
    if entrevistador_id is not None:
        q = q.filter(Appointment.entrevistador_id == entrevistador_id)
    if cras_id is not None:
        q = q.filter(Appointment.cras_id == cras_id)

    buckets, totals = bucket_stats(q.all(), view_mode)
    return DashboardStatsOut(
        view_mode=view_mode,
        year=year,
        month=month if view_mode == "mensal" else None,
        chart_data=buckets,
        stats=totals,
    )
