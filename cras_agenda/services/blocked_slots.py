from __future__ import annotations

from datetime import date

from fastapi import HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cras_agenda.audit.helpers import record_log
from cras_agenda.core.errors import BusinessError
from cras_agenda.core.logging import get_logger
from cras_agenda.models.appointment import Appointment, AppointmentStatus
from cras_agenda.models.blocked_slot import BlockedSlot
from cras_agenda.models.user import Role, User
from cras_agenda.schemas.blocked_slots import BlockedSlotCreateIn
from cras_agenda.services.access import (
    can_manage_entrevistador,
    get_entrevistador_or_404,
    resolve_entrevistador_for,
)
from cras_agenda.services.agenda import find_block
from cras_agenda.utils.tz import format_datetime_br, local_day_bounds_utc

log = get_logger(__name__)


def _already_blocked() -> BusinessError:
    return BusinessError(
        "Horário já bloqueado", status_code=status.HTTP_409_CONFLICT, code="SLOT_BLOCKED"
    )


def create_blocked_slot(
    db: Session, user: User, payload: BlockedSlotCreateIn, request: Request | None = None
) -> BlockedSlot:
    entrevistador = resolve_entrevistador_for(db, user, payload.entrevistador_id)
    if entrevistador.cras_id is None:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Entrevistador sem CRAS vinculado")

    if find_block(db, entrevistador.id, payload.data):
        raise _already_blocked()
    occupied = (
        db.query(Appointment)
        .filter(
            Appointment.entrevistador_id == entrevistador.id,
            Appointment.data == payload.data,
            Appointment.status != AppointmentStatus.CANCELADO,
        )
        .first()
    )
    if occupied:
        raise BusinessError(
            "Não é possível bloquear um horário com agendamento ativo",
            status_code=status.HTTP_409_CONFLICT,
            code="SLOT_TAKEN",
        )

    block = BlockedSlot(
        entrevistador_id=entrevistador.id,
        cras_id=entrevistador.cras_id,
        data=payload.data,
        motivo=(payload.motivo or "").strip() or None,
        created_by_id=user.id,
    )
    db.add(block)
    record_log(
        db,
        user_id=user.id,
        cras_id=entrevistador.cras_id,
        action="bloquear_horario",
        details=(
            f"Horário {format_datetime_br(block.data)} bloqueado para {entrevistador.name}"
            + (f" - Motivo: {block.motivo}" if block.motivo else "")
        ),
        request=request,
    )
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise _already_blocked() from e
    db.refresh(block)
    log.info("blocked_slot.created", blocked_slot_id=block.id, entrevistador_id=entrevistador.id)
    return block


def list_blocked_slots(
    db: Session, user: User, entrevistador_id: int | None, day: date | None = None
) -> list[BlockedSlot]:
    if user.role == Role.ENTREVISTADOR:
        target_id = user.id
    else:
        if entrevistador_id is None:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST, "Informe o entrevistador"
            )
        entrevistador = get_entrevistador_or_404(db, entrevistador_id)
        if not can_manage_entrevistador(user, entrevistador):
            raise HTTPException(
                status.HTTP_403_FORBIDDEN,
                "Você não tem permissão para acessar agendas de outro CRAS",
            )
        target_id = entrevistador.id

    q = db.query(BlockedSlot).filter(BlockedSlot.entrevistador_id == target_id)
    if day is not None:
        start_utc, end_utc = local_day_bounds_utc(day)
        q = q.filter(BlockedSlot.data >= start_utc, BlockedSlot.data < end_utc)
    return q.order_by(BlockedSlot.data.asc()).all()


def delete_blocked_slot(
    db: Session, user: User, block_id: int, request: Request | None = None
) -> None:
    block = db.get(BlockedSlot, block_id)
    allowed = block is not None and (
        user.role == Role.ADMIN
        or (user.role == Role.ENTREVISTADOR and block.entrevistador_id == user.id)
        or (user.role == Role.RECEPCAO and user.cras_id is not None and block.cras_id == user.cras_id)
    )
    if not allowed:
        # não revela bloqueios de outras agendas
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Bloqueio não encontrado")

    record_log(
        db,
        user_id=user.id,
        cras_id=block.cras_id,
        action="desbloquear_horario",
        details=f"Horário {format_datetime_br(block.data)} desbloqueado",
        request=request,
    )
    db.delete(block)
    db.commit()
    log.info("blocked_slot.deleted", blocked_slot_id=block_id)
