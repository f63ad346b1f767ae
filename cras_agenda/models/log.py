from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cras_agenda.db.base_class import Base
from cras_agenda.db.types import PortableINET, UTCDateTime


class Log(Base):
    __tablename__ = "logs"
    __table_args__ = (
        Index("ix_logs_date", "date"),
        Index("ix_logs_cras_date", "cras_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    cras_id: Mapped[int | None] = mapped_column(
        ForeignKey("cras.id", ondelete="SET NULL")
    )
    action: Mapped[str] = mapped_column(
        String(80), nullable=False
    )  # e.g. "login","criar_agendamento"
    details: Mapped[str | None] = mapped_column(Text)
    date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    ip: Mapped[str | None] = mapped_column(PortableINET())

    user = relationship("User")
    cras = relationship("Cras")
