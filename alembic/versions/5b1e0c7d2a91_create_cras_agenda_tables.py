"""create cras agenda tables

Revision ID: 5b1e0c7d2a91
Revises:
Create Date: 2025-10-20 09:12:44.104311

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5b1e0c7d2a91"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ROLE_VALUES = ("admin", "entrevistador", "recepcao")
STATUS_VALUES = ("agendado", "reagendar", "realizado", "ausente", "cancelado")
MOTIVO_VALUES = (
    "Atualização Cadastral",
    "Inclusão",
    "Transferência de Município",
    "Orientações Gerais",
)

ACTIVE_SLOT_WHERE = sa.text("status <> 'cancelado'")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # 1) cras
    op.create_table(
        "cras",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nome", sa.String(length=160), nullable=False),
        sa.Column("endereco", sa.String(length=255), nullable=False),
        sa.Column("telefone", sa.String(length=20), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_cras_nome", "cras", ["nome"])

    # 2) users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("matricula", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("password_hash", sa.String(length=512), nullable=False),
        sa.Column("role", sa.Enum(*ROLE_VALUES, name="role_enum"), nullable=False),
        sa.Column(
            "cras_id",
            sa.Integer(),
            sa.ForeignKey("cras.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("horarios_disponiveis", sa.JSON(), nullable=False),
        sa.Column("dias_atendimento", sa.JSON(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        *_timestamps(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )
    op.create_index("ix_users_matricula", "users", ["matricula"], unique=True)
    op.create_index("ix_users_cras_id", "users", ["cras_id"])

    # 3) appointments
    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "entrevistador_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "cras_id",
            sa.Integer(),
            sa.ForeignKey("cras.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("pessoa", sa.String(length=160), nullable=False),
        sa.Column("cpf", sa.String(length=11), nullable=False),
        sa.Column("telefone1", sa.String(length=11), nullable=False),
        sa.Column("telefone2", sa.String(length=11), nullable=True),
        sa.Column("motivo", sa.Enum(*MOTIVO_VALUES, name="motivo_enum"), nullable=False),
        sa.Column("data", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*STATUS_VALUES, name="appointment_status_enum"),
            nullable=False,
            server_default="agendado",
        ),
        sa.Column("observacoes", sa.Text(), nullable=True),
        sa.Column(
            "created_by_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "updated_by_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )
    op.create_index("ix_appointments_cpf", "appointments", ["cpf"])
    op.create_index("ix_appt_entrevistador_data", "appointments", ["entrevistador_id", "data"])
    op.create_index("ix_appt_cras_data", "appointments", ["cras_id", "data"])
    op.create_index("ix_appt_status", "appointments", ["status"])
    # único agendamento ativo por entrevistador/horário
    op.create_index(
        "ux_appt_entrevistador_data_ativo",
        "appointments",
        ["entrevistador_id", "data"],
        unique=True,
        postgresql_where=ACTIVE_SLOT_WHERE,
        sqlite_where=ACTIVE_SLOT_WHERE,
    )

    # 4) blocked_slots
    op.create_table(
        "blocked_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "entrevistador_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "cras_id",
            sa.Integer(),
            sa.ForeignKey("cras.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("data", sa.DateTime(timezone=True), nullable=False),
        sa.Column("motivo", sa.String(length=255), nullable=True),
        sa.Column(
            "created_by_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint(
            "entrevistador_id", "data", name="uq_blocked_entrevistador_data"
        ),
    )
    op.create_index(
        "ix_blocked_slots_entrevistador_id", "blocked_slots", ["entrevistador_id"]
    )

    # 5) logs
    op.create_table(
        "logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "cras_id",
            sa.Integer(),
            sa.ForeignKey("cras.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "ip",
            sa.String(length=45).with_variant(postgresql.INET(), "postgresql"),
            nullable=True,
        ),
    )
    op.create_index("ix_logs_user_id", "logs", ["user_id"])
    op.create_index("ix_logs_date", "logs", ["date"])
    op.create_index("ix_logs_cras_date", "logs", ["cras_id", "date"])


def downgrade() -> None:
    op.drop_table("logs")
    op.drop_table("blocked_slots")
    op.drop_index("ux_appt_entrevistador_data_ativo", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("users")
    op.drop_table("cras")

    bind = op.get_bind()
    for name in ("appointment_status_enum", "motivo_enum", "role_enum"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
