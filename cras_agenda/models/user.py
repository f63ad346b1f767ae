from __future__ import annotations

import datetime as dt
import enum

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cras_agenda.db.base_class import Base
from cras_agenda.db.types import UTCDateTime

# Slots de 30 min das 08:30 às 17:00, sem o almoço (12:00-13:00)
DEFAULT_HORARIOS: tuple[str, ...] = (
    "08:30", "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
    "13:00", "13:30", "14:00", "14:30", "15:00", "15:30", "16:00", "16:30",
)
# 0=domingo ... 6=sábado
DEFAULT_DIAS_ATENDIMENTO: tuple[int, ...] = (1, 2, 3, 4, 5)


class Role(str, enum.Enum):
    ADMIN = "admin"
    ENTREVISTADOR = "entrevistador"
    RECEPCAO = "recepcao"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    matricula: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    email: Mapped[str | None] = mapped_column(String(320))
    password_hash: Mapped[str] = mapped_column(String(512), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="role_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    cras_id: Mapped[int | None] = mapped_column(
        ForeignKey("cras.id", ondelete="RESTRICT"), index=True
    )
    horarios_disponiveis: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=lambda: list(DEFAULT_HORARIOS)
    )
    dias_atendimento: Mapped[list[int]] = mapped_column(
        JSON, nullable=False, default=lambda: list(DEFAULT_DIAS_ATENDIMENTO)
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: dt.datetime.now(tz=dt.UTC),
        nullable=False,
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: dt.datetime.now(tz=dt.UTC),
        onupdate=lambda: dt.datetime.now(tz=dt.UTC),
        nullable=False,
    )

    cras = relationship("Cras")
