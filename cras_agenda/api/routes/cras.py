from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from cras_agenda.audit.helpers import record_log
from cras_agenda.core import rate_limit
from cras_agenda.core.errors import BusinessError
from cras_agenda.db import get_db
from cras_agenda.deps import require_permission
from cras_agenda.models.appointment import Appointment
from cras_agenda.models.blocked_slot import BlockedSlot
from cras_agenda.models.cras import Cras
from cras_agenda.models.user import User
from cras_agenda.schemas.cras import CrasCreateIn, CrasOut, CrasUpdateIn

router = APIRouter(prefix="/cras", tags=["cras"])


def _get_or_404(db: Session, cras_id: int) -> Cras:
    c = db.get(Cras, cras_id)
    if not c:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "CRAS não encontrado")
    return c


@router.post(
    "",
    response_model=CrasOut,
    status_code=201,
    dependencies=[Depends(rate_limit.rate_limit(rate_limit.CREATE))],
)
def create_cras(
    payload: CrasCreateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("cras", "create"))],
    db: Session = Depends(get_db),
):
    c = Cras(nome=payload.nome, endereco=payload.endereco, telefone=payload.telefone or None)
    db.add(c)
    db.flush()
    record_log(
        db,
        user_id=current_user.id,
        cras_id=c.id,
        action="criar_cras",
        details=f"CRAS {c.nome} criado",
        request=request,
    )
    db.commit()
    db.refresh(c)
    return CrasOut.model_validate(c)


@router.get("", response_model=list[CrasOut])
def list_cras(
    current_user: Annotated[User, Depends(require_permission("cras", "read"))],
    db: Session = Depends(get_db),
):
    rows = db.query(Cras).order_by(Cras.nome.asc()).all()
    return [CrasOut.model_validate(c) for c in rows]


@router.get("/{cras_id}", response_model=CrasOut)
def get_cras(
    cras_id: int,
    current_user: Annotated[User, Depends(require_permission("cras", "read"))],
    db: Session = Depends(get_db),
):
    return CrasOut.model_validate(_get_or_404(db, cras_id))


@router.put("/{cras_id}", response_model=CrasOut)
def update_cras(
    cras_id: int,
    payload: CrasUpdateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("cras", "update"))],
    db: Session = Depends(get_db),
):
    c = _get_or_404(db, cras_id)
    changed = []
    for field in ("nome", "endereco", "telefone"):
        if field not in payload.model_fields_set:
            continue
        value = getattr(payload, field)
        if value is None and field != "telefone":
            continue
        if getattr(c, field) != (value or None):
            setattr(c, field, value or None)
            changed.append(field)
    if changed:
        record_log(
            db,
            user_id=current_user.id,
            cras_id=c.id,
            action="editar_cras",
            details=f"CRAS {c.nome} atualizado - campos: {', '.join(changed)}",
            request=request,
        )
        db.commit()
        db.refresh(c)
    return CrasOut.model_validate(c)


@router.delete(
    "/{cras_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(rate_limit.rate_limit(rate_limit.DELETE))],
)
def delete_cras(
    cras_id: int,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("cras", "delete"))],
    db: Session = Depends(get_db),
):
    c = _get_or_404(db, cras_id)
    in_use = (
        db.query(User).filter(User.cras_id == cras_id).first() is not None
        or db.query(Appointment).filter(Appointment.cras_id == cras_id).first() is not None
        or db.query(BlockedSlot).filter(BlockedSlot.cras_id == cras_id).first() is not None
    )
    if in_use:
        raise BusinessError(
            "CRAS possui usuários ou agendamentos vinculados",
            status_code=status.HTTP_409_CONFLICT,
            code="CRAS_HAS_DEPENDENCIES",
        )
    record_log(
        db,
        user_id=current_user.id,
        cras_id=None,
        action="excluir_cras",
        details=f"CRAS {c.nome} excluído",
        request=request,
    )
    db.delete(c)
    db.commit()
    return
