from __future__ import annotations

import datetime as dt

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cras_agenda.db.base_class import Base
from cras_agenda.db.types import UTCDateTime


class BlockedSlot(Base):
    __tablename__ = "blocked_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entrevistador_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    cras_id: Mapped[int] = mapped_column(
        ForeignKey("cras.id", ondelete="RESTRICT"), nullable=False
    )
    data: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    motivo: Mapped[str | None] = mapped_column(String(255))
    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: dt.datetime.now(tz=dt.UTC),
    )

    entrevistador = relationship("User", foreign_keys=[entrevistador_id])

    __table_args__ = (
        UniqueConstraint("entrevistador_id", "data", name="uq_blocked_entrevistador_data"),
    )
