from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from cras_agenda.db import get_db
from cras_agenda.deps import get_current_user, require_permission, require_roles
from cras_agenda.models.cras import Cras
from cras_agenda.models.user import Role, User
from cras_agenda.schemas.users import UserCreateIn, UserOut, UserUpdateIn
from cras_agenda.services import users as users_service
from cras_agenda.services.access import entrevistadores_do_cras

router = APIRouter(prefix="/users", tags=["users"])


def _get_or_404(db: Session, user_id: int) -> User:
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Usuário não encontrado")
    return u


@router.get("", response_model=list[UserOut])
def list_users(
    current_user: Annotated[User, Depends(require_permission("users", "read"))],
    db: Session = Depends(get_db),
):
    """Admin vê todos; demais papéis veem apenas entrevistadores ativos."""
    return [UserOut.model_validate(u) for u in users_service.list_users(db, current_user)]


@router.get("/entrevistadores", response_model=list[UserOut])
def list_entrevistadores(
    current_user: Annotated[User, Depends(get_current_user)],
    cras_id: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    q = db.query(User).filter(
        User.role == Role.ENTREVISTADOR,
        User.is_active == True,  # noqa: E712
    )
    if cras_id is not None:
        q = q.filter(User.cras_id == cras_id)
    return [UserOut.model_validate(u) for u in q.order_by(User.name.asc()).all()]


@router.get("/entrevistadores/cras/{cras_id}", response_model=list[UserOut])
def list_entrevistadores_by_cras(
    cras_id: int,
    current_user: Annotated[User, Depends(require_roles(Role.RECEPCAO, Role.ADMIN))],
    db: Session = Depends(get_db),
):
    if current_user.role == Role.RECEPCAO and current_user.cras_id != cras_id:
        raise HTTPException(
            status.HTTP_403_FORBIDDEN, "Você só pode consultar o próprio CRAS"
        )
    if not db.get(Cras, cras_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "CRAS não encontrado")
    return [UserOut.model_validate(u) for u in entrevistadores_do_cras(db, cras_id)]


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Session = Depends(get_db),
):
    if current_user.role != Role.ADMIN and current_user.id != user_id:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Sem permissão")
    return UserOut.model_validate(_get_or_404(db, user_id))


@router.post("", response_model=UserOut, status_code=201)
def create_user(
    payload: UserCreateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_roles(Role.ADMIN))],
    db: Session = Depends(get_db),
):
    u = users_service.create_user(db, current_user, payload, request)
    return UserOut.model_validate(u)


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_roles(Role.ADMIN))],
    db: Session = Depends(get_db),
):
    target = _get_or_404(db, user_id)
    u = users_service.update_user(db, current_user, target, payload, request)
    return UserOut.model_validate(u)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    current_user: Annotated[User, Depends(require_roles(Role.ADMIN))],
    db: Session = Depends(get_db),
):
    target = _get_or_404(db, user_id)
    removed = users_service.delete_user(db, current_user, target, request)
    if removed:
        return {"ok": True, "detail": "Usuário excluído"}
    return {"ok": True, "detail": "Usuário desativado (possui histórico de agendamentos)"}
