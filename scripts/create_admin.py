# scripts/create_admin.py
"""
Cria (ou reativa) um administrador.

    python -m scripts.create_admin --matricula admin --name "Administrador"

A senha vem de ADMIN_PASSWORD ou é pedida no terminal.
"""
from __future__ import annotations

import argparse
import getpass
import os
import sys

from sqlalchemy import select

from cras_agenda.core.security import hash_password, validate_password_policy
from cras_agenda.db import SessionLocal
from cras_agenda.models.user import Role, User


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Cria um usuário administrador")
    parser.add_argument("--matricula", required=True)
    parser.add_argument("--name", default="Administrador")
    args = parser.parse_args(argv)

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Senha: ")
    try:
        validate_password_policy(password)
    except ValueError as e:
        print(f"[create_admin] {e}", file=sys.stderr)
        return 1

    with SessionLocal() as db:
        user = db.execute(
            select(User).where(User.matricula == args.matricula)
        ).scalar_one_or_none()
        if user and user.role != Role.ADMIN:
            print(
                f"[create_admin] Matrícula {args.matricula} já pertence a um {user.role.value}",
                file=sys.stderr,
            )
            return 1
        if user:
            user.password_hash = hash_password(password)
            user.is_active = True
            action = "atualizado"
        else:
            user = User(
                name=args.name,
                matricula=args.matricula,
                role=Role.ADMIN,
                cras_id=None,
                password_hash=hash_password(password),
                horarios_disponiveis=[],
                dias_atendimento=[],
                is_active=True,
            )
            db.add(user)
            action = "criado"
        db.commit()
        print(f"[create_admin] Administrador {args.matricula} {action}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
