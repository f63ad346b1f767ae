from __future__ import annotations

import math
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, joinedload

from cras_agenda.audit.helpers import record_log
from cras_agenda.db import get_db
from cras_agenda.deps import require_permission
from cras_agenda.models.log import Log
from cras_agenda.models.user import Role, User
from cras_agenda.schemas.logs import LogCreateIn, LogOut, LogPage
from cras_agenda.utils.tz import local_day_bounds_utc

router = APIRouter(prefix="/logs", tags=["logs"])


def _out(entry: Log) -> LogOut:
    return LogOut(
        id=entry.id,
        user_id=entry.user_id,
        user_name=entry.user.name if entry.user else None,
        cras_id=entry.cras_id,
        cras_nome=entry.cras.nome if entry.cras else None,
        action=entry.action,
        details=entry.details,
        date=entry.date,
        ip=str(entry.ip) if entry.ip else None,
    )


@router.post("", response_model=LogOut, status_code=201)
def create_log(
    payload: LogCreateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("logs", "create"))],
    db: Session = Depends(get_db),
):
    # usuários fora do admin só registram no próprio CRAS
    cras_id = payload.cras_id if current_user.role == Role.ADMIN else current_user.cras_id
    entry = record_log(
        db,
        user_id=current_user.id,
        cras_id=cras_id,
        action=payload.action.strip(),
        details=payload.details,
        request=request,
    )
    db.commit()
    db.refresh(entry)
    return _out(entry)


@router.get("", response_model=LogPage)
def list_logs(
    current_user: Annotated[User, Depends(require_permission("logs", "read"))],
    cras_id: int | None = Query(None, ge=1, description="Somente admin"),
    user_id: int | None = Query(None, ge=1, description="Somente admin"),
    action: str | None = Query(None, max_length=80),
    data_inicio: date | None = Query(None),
    data_fim: date | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """
    Entrevistador vê os próprios registros; recepção vê os do seu CRAS;
    admin vê tudo e pode filtrar por CRAS ou usuário.
    """
    q = db.query(Log)
    if current_user.role == Role.ENTREVISTADOR:
        q = q.filter(Log.user_id == current_user.id)
    elif current_user.role == Role.RECEPCAO:
        q = q.filter(Log.cras_id == current_user.cras_id)
    else:
        if cras_id is not None:
            q = q.filter(Log.cras_id == cras_id)
        if user_id is not None:
            q = q.filter(Log.user_id == user_id)

    if action:
        q = q.filter(Log.action == action.strip())
    if data_inicio is not None:
        q = q.filter(Log.date >= local_day_bounds_utc(data_inicio)[0])
    if data_fim is not None:
        q = q.filter(Log.date < local_day_bounds_utc(data_fim)[1])

    total = q.count()
    rows = (
        q.options(joinedload(Log.user), joinedload(Log.cras))
        .order_by(Log.date.desc(), Log.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return LogPage(
        results=[_out(e) for e in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total else 0,
    )
