from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cras_agenda.utils.tz import to_utc


class BlockedSlotCreateIn(BaseModel):
    entrevistador_id: int | None = Field(
        None, ge=1, description="Obrigatório para recepção e admin."
    )
    data: datetime
    motivo: str | None = Field(None, max_length=255)

    @field_validator("data")
    @classmethod
    def _data(cls, v):
        return to_utc(v)


class BlockedSlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entrevistador_id: int
    cras_id: int
    data: datetime
    motivo: str | None = None
    created_by_id: int | None = None
    created_at: datetime
