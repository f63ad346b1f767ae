from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from cras_agenda.db import get_db
from cras_agenda.deps import require_permission
from cras_agenda.models.user import User
from cras_agenda.schemas.blocked_slots import BlockedSlotCreateIn, BlockedSlotOut
from cras_agenda.services import blocked_slots as svc

router = APIRouter(prefix="/blocked-slots", tags=["blocked-slots"])


@router.post("", response_model=BlockedSlotOut, status_code=201)
def create_blocked_slot(
    payload: BlockedSlotCreateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("blocked_slots", "create"))],
    db: Session = Depends(get_db),
):
    return BlockedSlotOut.model_validate(svc.create_blocked_slot(db, current_user, payload, request))


@router.get("", response_model=list[BlockedSlotOut])
def list_blocked_slots(
    current_user: Annotated[User, Depends(require_permission("blocked_slots", "read"))],
    entrevistador_id: int | None = Query(
        None, ge=1, description="Obrigatório para recepção e admin"
    ),
    data: date | None = Query(None, description="Dia local (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    rows = svc.list_blocked_slots(db, current_user, entrevistador_id, data)
    return [BlockedSlotOut.model_validate(b) for b in rows]


@router.delete("/{blocked_slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_slot(
    blocked_slot_id: int,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("blocked_slots", "delete"))],
    db: Session = Depends(get_db),
):
    svc.delete_blocked_slot(db, current_user, blocked_slot_id, request)
    return
