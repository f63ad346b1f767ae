from __future__ import annotations

import datetime as dt
import enum

from sqlalchemy import Enum, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cras_agenda.db.base_class import Base
from cras_agenda.db.types import UTCDateTime


class AppointmentStatus(str, enum.Enum):
    AGENDADO = "agendado"
    REAGENDAR = "reagendar"
    REALIZADO = "realizado"
    AUSENTE = "ausente"
    CANCELADO = "cancelado"


class Motivo(str, enum.Enum):
    ATUALIZACAO_CADASTRAL = "Atualização Cadastral"
    INCLUSAO = "Inclusão"
    TRANSFERENCIA_MUNICIPIO = "Transferência de Município"
    ORIENTACOES_GERAIS = "Orientações Gerais"


# Status que ocupam o horário do entrevistador
ACTIVE_STATUSES = tuple(s for s in AppointmentStatus if s != AppointmentStatus.CANCELADO)

_ACTIVE_SLOT_WHERE = text("status <> 'cancelado'")


def _values(e: type[enum.Enum]) -> list[str]:
    return [m.value for m in e]


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entrevistador_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    cras_id: Mapped[int] = mapped_column(
        ForeignKey("cras.id", ondelete="RESTRICT"), nullable=False
    )
    pessoa: Mapped[str] = mapped_column(String(160), nullable=False)
    cpf: Mapped[str] = mapped_column(String(11), nullable=False, index=True)
    telefone1: Mapped[str] = mapped_column(String(11), nullable=False)
    telefone2: Mapped[str | None] = mapped_column(String(11))
    motivo: Mapped[Motivo] = mapped_column(
        Enum(Motivo, name="motivo_enum", values_callable=_values), nullable=False
    )
    data: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus, name="appointment_status_enum", values_callable=_values),
        nullable=False,
        default=AppointmentStatus.AGENDADO,
    )
    observacoes: Mapped[str | None] = mapped_column(Text)

    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    updated_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: dt.datetime.now(tz=dt.UTC),
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: dt.datetime.now(tz=dt.UTC),
        onupdate=lambda: dt.datetime.now(tz=dt.UTC),
    )

    entrevistador = relationship("User", foreign_keys=[entrevistador_id])
    cras = relationship("Cras")
    created_by = relationship("User", foreign_keys=[created_by_id])
    updated_by = relationship("User", foreign_keys=[updated_by_id])

    __table_args__ = (
        # um único agendamento ativo por entrevistador/horário
        Index(
            "ux_appt_entrevistador_data_ativo",
            "entrevistador_id",
            "data",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_WHERE,
            sqlite_where=_ACTIVE_SLOT_WHERE,
        ),
        Index("ix_appt_entrevistador_data", "entrevistador_id", "data"),
        Index("ix_appt_cras_data", "cras_id", "data"),
        Index("ix_appt_status", "status"),
    )
