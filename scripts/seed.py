# scripts/seed.py
from __future__ import annotations

import os
import random
from collections.abc import Iterable
from datetime import date, timedelta

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from cras_agenda.core.security import hash_password
from cras_agenda.db import get_db
from cras_agenda.models.appointment import Appointment, AppointmentStatus, Motivo
from cras_agenda.models.cras import Cras
from cras_agenda.models.user import DEFAULT_DIAS_ATENDIMENTO, DEFAULT_HORARIOS, Role, User
from cras_agenda.services.agenda import parse_horario
from cras_agenda.utils.tz import LOCAL_TZ, combine_local_to_utc, is_weekend, js_weekday
from cras_agenda.utils.validators import cpf_check_digits

# ---------------- Configuráveis por ENV ----------------
SEED_BUSINESS_DAYS = int(os.getenv("SEED_DAYS", "10"))
SEED_PASSWORD = os.getenv("SEED_PASSWORD", "senha12345")
SEED_RANDOM = random.Random(int(os.getenv("SEED_RANDOM", "42")))

# ---------------- Dados de Exemplo ----------------
CRAS_DATA = [
    {"nome": "CRAS Centro", "endereco": "Rua XV de Novembro, 100", "telefone": "4133330001"},
    {"nome": "CRAS Vila Nova", "endereco": "Av. das Flores, 250", "telefone": "4133330002"},
]

ENTREVISTADORES_DATA = [
    ("Ana Souza", "E1001", 0),
    ("Bruno Lima", "E1002", 0),
    ("Carla Dias", "E2001", 1),
]

RECEPCAO_DATA = [
    ("Diego Alves", "R1001", 0),
    ("Eduarda Pires", "R2001", 1),
]

PESSOAS = [
    "Marcos Lima",
    "Patrícia Alves",
    "Roberta Dias",
    "Carlos Nogueira",
    "Fernanda Pires",
    "João Batista",
    "Luciana Rocha",
]


# ---------------- Helpers ----------------
def get_session() -> Session:
    gen = get_db()
    session: Session = next(gen)
    return session


def _fake_cpf() -> str:
    base = "".join(str(SEED_RANDOM.randint(0, 9)) for _ in range(9))
    if base == base[0] * 9:
        base = "123456789"
    return base + cpf_check_digits(base)


def _fake_phone() -> str:
    return "419" + "".join(str(SEED_RANDOM.randint(0, 9)) for _ in range(8))


def _business_days(start: date, n_days: int) -> Iterable[date]:
    d = start
    count = 0
    while count < n_days:
        if not is_weekend(d):
            yield d
            count += 1
        d += timedelta(days=1)


# ---------------- Funções de Seed ----------------
def ensure_cras(db: Session) -> list[Cras]:
    result = []
    for data in CRAS_DATA:
        c = db.execute(select(Cras).where(Cras.nome == data["nome"])).scalar_one_or_none()
        if not c:
            c = Cras(**data)
            db.add(c)
            db.commit()
            db.refresh(c)
            print(f"[Seed] CRAS criado: {c.nome}")
        result.append(c)
    return result


def ensure_user(
    db: Session, *, name: str, matricula: str, role: Role, cras_id: int | None
) -> User:
    user = db.execute(select(User).where(User.matricula == matricula)).scalar_one_or_none()
    if user:
        return user

    user = User(
        name=name,
        matricula=matricula,
        role=role,
        cras_id=cras_id,
        password_hash=hash_password(SEED_PASSWORD),
        horarios_disponiveis=list(DEFAULT_HORARIOS) if role == Role.ENTREVISTADOR else [],
        dias_atendimento=list(DEFAULT_DIAS_ATENDIMENTO) if role == Role.ENTREVISTADOR else [],
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    print(f"[Seed] Usuário criado: {user.name} ({user.matricula}) - Papel: {user.role.value}")
    return user


def ensure_appointments(db: Session, entrevistadores: list[User], days_to_seed: int) -> None:
    print("[Seed] Gerando agendamentos...")
    today = date.today()
    total = 0
    statuses = [
        AppointmentStatus.AGENDADO,
        AppointmentStatus.AGENDADO,
        AppointmentStatus.REALIZADO,
        AppointmentStatus.AUSENTE,
    ]

    for day in _business_days(today - timedelta(days=days_to_seed), days_to_seed * 2):
        for ent in entrevistadores:
            if js_weekday(day) not in ent.dias_atendimento:
                continue
            for horario in ent.horarios_disponiveis:
                # ~40% de ocupação
                if SEED_RANDOM.random() > 0.4:
                    continue
                when = combine_local_to_utc(day, parse_horario(horario), LOCAL_TZ)
                exists = db.execute(
                    select(Appointment).where(
                        Appointment.entrevistador_id == ent.id,
                        Appointment.data == when,
                    )
                ).scalar_one_or_none()
                if exists:
                    continue
                status = (
                    SEED_RANDOM.choice(statuses) if day < today else AppointmentStatus.AGENDADO
                )
                db.add(
                    Appointment(
                        entrevistador_id=ent.id,
                        cras_id=ent.cras_id,
                        pessoa=SEED_RANDOM.choice(PESSOAS),
                        cpf=_fake_cpf(),
                        telefone1=_fake_phone(),
                        motivo=SEED_RANDOM.choice(list(Motivo)),
                        data=when,
                        status=status,
                        created_by_id=ent.id,
                        updated_by_id=ent.id,
                    )
                )
                total += 1
    db.commit()
    print(f"[Seed] {total} agendamentos criados.")


def check_tables_exist(db: Session) -> bool:
    """Check if all required tables exist in the database."""
    for table in ("cras", "users", "appointments", "blocked_slots", "logs"):
        try:
            db.execute(text(f"SELECT 1 FROM {table} LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            return False
    return True


def main():
    print("[Seed] Iniciando seed do banco de dados...")
    db = get_session()
    try:
        if not check_tables_exist(db):
            print("[Seed] Erro: as tabelas ainda não foram criadas.")
            print("[Seed] Execute as migrações antes: alembic upgrade head")
            return

        cras = ensure_cras(db)
        ensure_user(db, name="Administrador", matricula="admin", role=Role.ADMIN, cras_id=None)
        entrevistadores = [
            ensure_user(
                db, name=name, matricula=mat, role=Role.ENTREVISTADOR, cras_id=cras[idx].id
            )
            for name, mat, idx in ENTREVISTADORES_DATA
        ]
        for name, mat, idx in RECEPCAO_DATA:
            ensure_user(db, name=name, matricula=mat, role=Role.RECEPCAO, cras_id=cras[idx].id)

        ensure_appointments(db, entrevistadores, SEED_BUSINESS_DAYS)

        print("\n[Seed] Concluído!")
        print("-------------------------------------------------")
        print(f"Usuários criados (senha padrão: '{SEED_PASSWORD}'):")
        print("- admin (Administrador)")
        for name, mat, _ in ENTREVISTADORES_DATA:
            print(f"- {mat} ({name}, entrevistador)")
        for name, mat, _ in RECEPCAO_DATA:
            print(f"- {mat} ({name}, recepção)")
        print("-------------------------------------------------")
    finally:
        db.close()


if __name__ == "__main__":
    main()
