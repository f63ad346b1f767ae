from __future__ import annotations

from datetime import UTC, datetime

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from cras_agenda.audit.helpers import record_log
from cras_agenda.core.errors import BusinessError
from cras_agenda.core.logging import get_logger
from cras_agenda.core.security import hash_password
from cras_agenda.models.appointment import Appointment
from cras_agenda.models.blocked_slot import BlockedSlot
from cras_agenda.models.cras import Cras
from cras_agenda.models.user import DEFAULT_DIAS_ATENDIMENTO, DEFAULT_HORARIOS, Role, User
from cras_agenda.schemas.users import UserCreateIn, UserUpdateIn
from cras_agenda.services.appointments import future_scheduled_count

log = get_logger(__name__)


def _ensure_matricula_free(db: Session, matricula: str, exclude_id: int | None = None) -> None:
    q = db.query(User).filter(User.matricula == matricula)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first():
        raise BusinessError(
            "Matrícula já cadastrada", status_code=status.HTTP_409_CONFLICT,
            code="MATRICULA_IN_USE",
        )


def _resolve_cras(db: Session, role: Role, cras_id: int | None) -> int | None:
    if role == Role.ADMIN:
        if cras_id is not None:
            raise BusinessError("Administrador não deve ser vinculado a um CRAS")
        return None
    if cras_id is None:
        raise BusinessError("CRAS é obrigatório para entrevistador e recepção")
    if not db.get(Cras, cras_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "CRAS não encontrado")
    return cras_id


def list_users(db: Session, user: User) -> list[User]:
    q = db.query(User)
    if user.role != Role.ADMIN:
        q = q.filter(
            User.role == Role.ENTREVISTADOR,
            User.is_active == True,  # noqa: E712
        )
    return q.order_by(User.name.asc()).all()


def create_user(
    db: Session, admin: User, payload: UserCreateIn, request: Request | None = None
) -> User:
    _ensure_matricula_free(db, payload.matricula)
    cras_id = _resolve_cras(db, payload.role, payload.cras_id)

    new_user = User(
        name=payload.name,
        matricula=payload.matricula,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
        cras_id=cras_id,
        is_active=True,
    )
    if payload.role == Role.ENTREVISTADOR:
        new_user.horarios_disponiveis = payload.horarios_disponiveis or list(DEFAULT_HORARIOS)
        new_user.dias_atendimento = (
            payload.dias_atendimento
            if payload.dias_atendimento is not None
            else list(DEFAULT_DIAS_ATENDIMENTO)
        )
    else:
        new_user.horarios_disponiveis = []
        new_user.dias_atendimento = []
    db.add(new_user)
    db.flush()
    record_log(
        db,
        user_id=admin.id,
        cras_id=cras_id,
        action="criar_usuario",
        details=f"Usuário {new_user.name} ({new_user.role.value}) criado - matrícula {new_user.matricula}",
        request=request,
    )
    db.commit()
    db.refresh(new_user)
    log.info("user.created", target_id=new_user.id, role=new_user.role.value)
    return new_user


def update_user(
    db: Session,
    admin: User,
    target: User,
    payload: UserUpdateIn,
    request: Request | None = None,
) -> User:
    sent = payload.model_fields_set
    changed: list[str] = []

    if "role" in sent and payload.role is not None and payload.role != target.role:
        if target.id == admin.id:
            raise HTTPException(
                status.HTTP_403_FORBIDDEN, "Você não pode alterar o próprio papel"
            )
        if _is_last_active_admin(db, target):
            raise BusinessError("Não é possível remover o último administrador")
        target.role = payload.role
        changed.append("role")

    if "matricula" in sent and payload.matricula and payload.matricula != target.matricula:
        _ensure_matricula_free(db, payload.matricula, exclude_id=target.id)
        target.matricula = payload.matricula
        changed.append("matricula")

    if "name" in sent and payload.name and payload.name != target.name:
        target.name = payload.name
        changed.append("name")

    if "email" in sent and payload.email != target.email:
        target.email = payload.email
        changed.append("email")

    if "password" in sent and payload.password:
        target.password_hash = hash_password(payload.password)
        changed.append("password")

    if "is_active" in sent and payload.is_active is not None and payload.is_active != target.is_active:
        if target.id == admin.id and not payload.is_active:
            raise BusinessError("Você não pode desativar a própria conta")
        target.is_active = payload.is_active
        changed.append("is_active")

    cras_id = payload.cras_id if "cras_id" in sent else target.cras_id
    if target.role == Role.ADMIN:
        cras_id = None
    new_cras_id = _resolve_cras(db, target.role, cras_id)
    if new_cras_id != target.cras_id:
        target.cras_id = new_cras_id
        changed.append("cras_id")

    if "role" in changed:
        # troca de papel: entrevistador recebe a agenda padrão, os demais ficam sem agenda
        if target.role == Role.ENTREVISTADOR:
            target.horarios_disponiveis = list(DEFAULT_HORARIOS)
            target.dias_atendimento = list(DEFAULT_DIAS_ATENDIMENTO)
        else:
            target.horarios_disponiveis = []
            target.dias_atendimento = []

    if target.role == Role.ENTREVISTADOR:
        if payload.horarios_disponiveis is not None:
            target.horarios_disponiveis = list(payload.horarios_disponiveis)
            changed.append("horarios_disponiveis")
        if payload.dias_atendimento is not None:
            target.dias_atendimento = list(payload.dias_atendimento)
            changed.append("dias_atendimento")
    elif payload.horarios_disponiveis is not None or payload.dias_atendimento is not None:
        raise BusinessError("Agenda só pode ser configurada para entrevistadores")

    if not changed:
        return target

    record_log(
        db,
        user_id=admin.id,
        cras_id=target.cras_id,
        action="editar_usuario",
        details=f"Usuário {target.name} atualizado - campos: {', '.join(changed)}",
        request=request,
    )
    db.commit()
    db.refresh(target)
    log.info("user.updated", target_id=target.id, fields=changed)
    return target


def _active_admins(db: Session) -> int:
    return (
        db.query(User)
        .filter(User.role == Role.ADMIN, User.is_active == True)  # noqa: E712
        .count()
    )


def _is_last_active_admin(db: Session, target: User) -> bool:
    # admin já desativado não conta: removê-lo não altera o total de ativos
    return target.role == Role.ADMIN and target.is_active and _active_admins(db) <= 1


def delete_user(
    db: Session, admin: User, target: User, request: Request | None = None
) -> bool:
    """
    Exclui o usuário. Se houver agendamentos no histórico, o usuário é apenas
    desativado para preservar as referências. Retorna True se foi excluído.
    """
    if target.id == admin.id:
        raise BusinessError("Você não pode excluir a si mesmo")
    if _is_last_active_admin(db, target):
        raise BusinessError("Não é possível excluir o último administrador")
    if target.role == Role.ENTREVISTADOR:
        pending = future_scheduled_count(db, target.id, datetime.now(UTC))
        if pending:
            raise BusinessError(
                f"Entrevistador possui {pending} agendamento(s) futuro(s). "
                "Remaneje-os antes de excluir.",
                status_code=status.HTTP_409_CONFLICT,
                code="USER_HAS_DEPENDENCIES",
            )

    has_history = (
        db.query(Appointment)
        .filter(
            (Appointment.entrevistador_id == target.id)
            | (Appointment.created_by_id == target.id)
        )
        .first()
        is not None
    )
    record_log(
        db,
        user_id=admin.id,
        cras_id=target.cras_id,
        action="excluir_usuario",
        details=f"Usuário {target.name} (matrícula {target.matricula}) excluído",
        request=request,
    )
    target_id = target.id
    if has_history:
        target.is_active = False
    else:
        db.query(BlockedSlot).filter(BlockedSlot.entrevistador_id == target_id).delete(
            synchronize_session=False
        )
        db.delete(target)
    db.commit()
    log.info("user.deleted", target_id=target_id, soft=has_history)
    return not has_history
