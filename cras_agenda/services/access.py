"""
Controle de acesso por papel e por CRAS.

- admin: tudo.
- recepcao: agendamentos e bloqueios dos entrevistadores do próprio CRAS.
- entrevistador: apenas a própria agenda.
"""
from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from cras_agenda.models.appointment import Appointment
from cras_agenda.models.user import Role, User

CRUD = frozenset({"create", "read", "update", "delete"})

PERMISSIONS: dict[Role, dict[str, frozenset[str]]] = {
    Role.ADMIN: {
        "appointments": CRUD,
        "users": CRUD,
        "cras": CRUD,
        "logs": frozenset({"create", "read"}),
        "blocked_slots": frozenset({"create", "read", "delete"}),
        "stats": frozenset({"read"}),
    },
    Role.RECEPCAO: {
        "appointments": CRUD,
        "users": frozenset({"read"}),
        "cras": frozenset({"read"}),
        "logs": frozenset({"create", "read"}),
        "blocked_slots": frozenset({"create", "read", "delete"}),
    },
    Role.ENTREVISTADOR: {
        "appointments": CRUD,
        "users": frozenset({"read"}),
        "cras": frozenset({"read"}),
        "logs": frozenset({"create", "read"}),
        "blocked_slots": frozenset({"create", "read", "delete"}),
        "stats": frozenset({"read"}),
    },
}


def can_access(role: Role, resource: str, action: str) -> bool:
    return action in PERMISSIONS.get(role, {}).get(resource, frozenset())


def entrevistadores_do_cras(db: Session, cras_id: int | None) -> list[User]:
    if cras_id is None:
        return []
    return (
        db.query(User)
        .filter(
            User.role == Role.ENTREVISTADOR,
            User.cras_id == cras_id,
            User.is_active == True,  # noqa: E712
        )
        .order_by(User.name.asc())
        .all()
    )


def visible_entrevistador_ids(db: Session, user: User) -> list[int] | None:
    """IDs de entrevistadores cujas agendas o usuário enxerga; None = sem restrição."""
    if user.role == Role.ADMIN:
        return None
    if user.role == Role.ENTREVISTADOR:
        return [user.id]
    return [u.id for u in entrevistadores_do_cras(db, user.cras_id)]


def can_manage_entrevistador(user: User, entrevistador: User) -> bool:
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.RECEPCAO:
        return user.cras_id is not None and entrevistador.cras_id == user.cras_id
    if user.role == Role.ENTREVISTADOR:
        return entrevistador.id == user.id
    return False


def can_manage_appointment(db: Session, user: User, appointment: Appointment) -> bool:
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.ENTREVISTADOR:
        return appointment.entrevistador_id == user.id
    if user.role == Role.RECEPCAO:
        entrevistador = db.get(User, appointment.entrevistador_id)
        return entrevistador is not None and can_manage_entrevistador(user, entrevistador)
    return False


def get_entrevistador_or_404(db: Session, entrevistador_id: int) -> User:
    entrevistador = db.get(User, entrevistador_id)
    if not entrevistador or entrevistador.role != Role.ENTREVISTADOR:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Entrevistador não encontrado")
    return entrevistador


def resolve_entrevistador_for(
    db: Session, user: User, entrevistador_id: int | None
) -> User:
    """
    Entrevistador alvo de uma operação de escrita (agendar, bloquear).
    Entrevistador age sobre si mesmo; recepção sobre o próprio CRAS; admin sobre qualquer um.
    """
    if user.role == Role.ENTREVISTADOR:
        if entrevistador_id is not None and entrevistador_id != user.id:
            raise HTTPException(
                status.HTTP_403_FORBIDDEN,
                "Entrevistador só pode operar a própria agenda",
            )
        return user

    if entrevistador_id is None:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, "Informe o entrevistador"
        )
    entrevistador = get_entrevistador_or_404(db, entrevistador_id)
    if not entrevistador.is_active:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Entrevistador inativo")
    if not can_manage_entrevistador(user, entrevistador):
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            "Você não tem permissão para acessar agendas de outro CRAS",
        )
    return entrevistador
