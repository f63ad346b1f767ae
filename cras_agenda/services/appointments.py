from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from fastapi import HTTPException, Request, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from cras_agenda.audit.helpers import record_log
from cras_agenda.core.errors import SlotTakenError
from cras_agenda.core.logging import get_logger
from cras_agenda.models.appointment import Appointment, AppointmentStatus
from cras_agenda.models.cras import Cras
from cras_agenda.models.user import User
from cras_agenda.schemas.appointments import (
    AppointmentCreateIn,
    AppointmentOut,
    AppointmentPage,
    AppointmentUpdateIn,
)
from cras_agenda.services.access import (
    can_manage_appointment,
    resolve_entrevistador_for,
    visible_entrevistador_ids,
)
from cras_agenda.services.agenda import check_slot
from cras_agenda.utils.tz import format_datetime_br, local_day_bounds_utc
from cras_agenda.utils.validators import only_digits

log = get_logger(__name__)

SEARCH_MAX_LENGTH = 100
SORTABLE_FIELDS = ("data", "pessoa", "status", "motivo", "created_at", "entrevistador", "cras")

# campos editáveis, na ordem em que aparecem no resumo de alterações
EDITABLE_FIELDS = (
    "pessoa",
    "cpf",
    "telefone1",
    "telefone2",
    "motivo",
    "status",
    "data",
    "observacoes",
)


@dataclass
class AppointmentFilters:
    entrevistador_id: int | None = None
    cras_id: int | None = None
    status: AppointmentStatus | None = None
    data: date | None = None
    data_inicio: date | None = None
    data_fim: date | None = None
    search: str | None = None


def appointment_out(a: Appointment) -> AppointmentOut:
    return AppointmentOut(
        id=a.id,
        entrevistador_id=a.entrevistador_id,
        entrevistador_nome=a.entrevistador.name if a.entrevistador else None,
        cras_id=a.cras_id,
        cras_nome=a.cras.nome if a.cras else None,
        pessoa=a.pessoa,
        cpf=a.cpf,
        telefone1=a.telefone1,
        telefone2=a.telefone2,
        motivo=a.motivo,
        status=a.status,
        data=a.data,
        observacoes=a.observacoes,
        created_by_id=a.created_by_id,
        updated_by_id=a.updated_by_id,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def _commit_slot(db: Session, when_utc: datetime) -> None:
    """Commit protegido pelo índice único parcial (entrevistador, data)."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        log.warning("appointment.slot_race", data=when_utc.isoformat())
        raise SlotTakenError(format_datetime_br(when_utc)) from e


def create_appointment(
    db: Session, user: User, payload: AppointmentCreateIn, request: Request | None = None
) -> Appointment:
    entrevistador = resolve_entrevistador_for(db, user, payload.entrevistador_id)
    if entrevistador.cras_id is None:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, "Entrevistador sem CRAS vinculado"
        )
    check_slot(db, entrevistador, payload.data)

    appt = Appointment(
        entrevistador_id=entrevistador.id,
        cras_id=entrevistador.cras_id,
        pessoa=payload.pessoa,
        cpf=payload.cpf,
        telefone1=payload.telefone1,
        telefone2=payload.telefone2,
        motivo=payload.motivo,
        data=payload.data,
        status=AppointmentStatus.AGENDADO,
        observacoes=payload.observacoes or None,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(appt)
    record_log(
        db,
        user_id=user.id,
        cras_id=entrevistador.cras_id,
        action="criar_agendamento",
        details=(
            f"Agendamento criado para {appt.pessoa} em "
            f"{format_datetime_br(appt.data)} - Motivo: {appt.motivo.value}"
        ),
        request=request,
    )
    _commit_slot(db, appt.data)
    db.refresh(appt)
    log.info(
        "appointment.created",
        appointment_id=appt.id,
        entrevistador_id=appt.entrevistador_id,
        data=appt.data.isoformat(),
    )
    return appt


def scoped_query(db: Session, user: User, filters: AppointmentFilters) -> Query:
    q = db.query(Appointment)

    visible = visible_entrevistador_ids(db, user)
    if visible is not None:
        q = q.filter(Appointment.entrevistador_id.in_(visible))
    elif filters.cras_id is not None:
        q = q.filter(Appointment.cras_id == filters.cras_id)

    if filters.entrevistador_id is not None:
        q = q.filter(Appointment.entrevistador_id == filters.entrevistador_id)
    if filters.status is not None:
        q = q.filter(Appointment.status == filters.status)
    if filters.data is not None:
        start_utc, end_utc = local_day_bounds_utc(filters.data)
        q = q.filter(Appointment.data >= start_utc, Appointment.data < end_utc)
    if filters.data_inicio is not None:
        q = q.filter(Appointment.data >= local_day_bounds_utc(filters.data_inicio)[0])
    if filters.data_fim is not None:
        q = q.filter(Appointment.data < local_day_bounds_utc(filters.data_fim)[1])

    term = (filters.search or "").strip()[:SEARCH_MAX_LENGTH]
    if term:
        conds = [Appointment.pessoa.ilike(f"%{term}%")]
        digits = only_digits(term)
        if digits:
            like = f"%{digits}%"
            conds += [
                Appointment.cpf.like(like),
                Appointment.telefone1.like(like),
                Appointment.telefone2.like(like),
            ]
        q = q.filter(or_(*conds))

    return q.options(joinedload(Appointment.entrevistador), joinedload(Appointment.cras))


def _order(q: Query, sort_by: str, order: str) -> Query:
    if sort_by == "entrevistador":
        q = q.join(User, User.id == Appointment.entrevistador_id)
        column: Any = User.name
    elif sort_by == "cras":
        q = q.join(Cras, Cras.id == Appointment.cras_id)
        column = Cras.nome
    else:
        column = getattr(Appointment, sort_by)
    if order == "asc":
        return q.order_by(column.asc(), Appointment.id.asc())
    return q.order_by(column.desc(), Appointment.id.desc())


def list_appointments(
    db: Session,
    user: User,
    filters: AppointmentFilters,
    *,
    page: int = 1,
    page_size: int = 50,
    sort_by: str = "data",
    order: str = "desc",
) -> AppointmentPage:
    q = scoped_query(db, user, filters)
    total = q.count()
    rows = _order(q, sort_by, order).offset((page - 1) * page_size).limit(page_size).all()
    return AppointmentPage(
        results=[appointment_out(a) for a in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total else 0,
    )


def get_appointment_for(db: Session, user: User, appointment_id: int) -> Appointment:
    appt = db.get(Appointment, appointment_id)
    if not appt:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Agendamento não encontrado")
    if not can_manage_appointment(db, user, appt):
        log.warning(
            "appointment.forbidden",
            appointment_id=appointment_id,
            user_id=user.id,
            role=user.role.value,
        )
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            "Você não tem permissão para acessar este agendamento",
        )
    return appt


def _display(field: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return str(value.value)
    if field == "data" and isinstance(value, datetime):
        return format_datetime_br(value)
    return str(value)


def _reactivates(old: AppointmentStatus, new: AppointmentStatus) -> bool:
    return old == AppointmentStatus.CANCELADO and new != AppointmentStatus.CANCELADO


def update_appointment(
    db: Session,
    user: User,
    appt: Appointment,
    payload: AppointmentUpdateIn,
    request: Request | None = None,
) -> Appointment:
    sent = payload.model_fields_set
    changes: list[str] = []
    new_values: dict[str, Any] = {}
    for field in EDITABLE_FIELDS:
        if field not in sent:
            continue
        value = getattr(payload, field)
        if value is None and field in ("pessoa", "cpf", "telefone1", "motivo", "status", "data"):
            continue  # obrigatórios: null não apaga
        if field == "observacoes" and value == "":
            value = None
        old = getattr(appt, field)
        if old != value:
            new_values[field] = value
            changes.append(f'{field}: "{_display(field, old)}" → "{_display(field, value)}"')

    if not new_values:
        return appt

    new_data = new_values.get("data", appt.data)
    new_status = new_values.get("status", appt.status)
    if new_status != AppointmentStatus.CANCELADO and (
        "data" in new_values or _reactivates(appt.status, new_status)
    ):
        entrevistador = db.get(User, appt.entrevistador_id)
        check_slot(db, entrevistador, new_data, ignore_appointment_id=appt.id)

    for field, value in new_values.items():
        setattr(appt, field, value)
    appt.updated_by_id = user.id

    record_log(
        db,
        user_id=user.id,
        cras_id=appt.cras_id,
        action="editar_agendamento",
        details=f"Agendamento de {appt.pessoa} atualizado - " + "; ".join(changes),
        request=request,
    )
    _commit_slot(db, appt.data)
    db.refresh(appt)
    log.info("appointment.updated", appointment_id=appt.id, fields=sorted(new_values))
    return appt


STATUS_ACTIONS = {
    AppointmentStatus.REALIZADO: ("confirmar_presenca", "Presença confirmada"),
    AppointmentStatus.AGENDADO: ("remover_confirmacao", "Confirmação removida"),
    AppointmentStatus.AUSENTE: ("registrar_ausencia", "Ausência registrada"),
}


def set_status(
    db: Session,
    user: User,
    appt: Appointment,
    new_status: AppointmentStatus,
    request: Request | None = None,
) -> Appointment:
    action, label = STATUS_ACTIONS[new_status]
    if _reactivates(appt.status, new_status):
        entrevistador = db.get(User, appt.entrevistador_id)
        check_slot(db, entrevistador, appt.data, ignore_appointment_id=appt.id)
    appt.status = new_status
    appt.updated_by_id = user.id
    record_log(
        db,
        user_id=user.id,
        cras_id=appt.cras_id,
        action=action,
        details=f"{label} para {appt.pessoa} em {format_datetime_br(appt.data)}",
        request=request,
    )
    _commit_slot(db, appt.data)
    db.refresh(appt)
    log.info("appointment.status_changed", appointment_id=appt.id, status=new_status.value)
    return appt


def delete_appointment(
    db: Session, user: User, appt: Appointment, request: Request | None = None
) -> None:
    record_log(
        db,
        user_id=user.id,
        cras_id=appt.cras_id,
        action="deletar_agendamento",
        details=(
            f"Agendamento de {appt.pessoa} em {format_datetime_br(appt.data)} excluído"
        ),
        request=request,
    )
    appointment_id = appt.id
    db.delete(appt)
    db.commit()
    log.info("appointment.deleted", appointment_id=appointment_id, by=user.id)


def future_scheduled_count(db: Session, entrevistador_id: int, now: datetime) -> int:
    return (
        db.query(Appointment)
        .filter(
            Appointment.entrevistador_id == entrevistador_id,
            Appointment.status == AppointmentStatus.AGENDADO,
            Appointment.data >= now,
        )
        .count()
    )
