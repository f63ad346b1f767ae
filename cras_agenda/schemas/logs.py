from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class LogCreateIn(BaseModel):
    action: str = Field(..., min_length=1, max_length=80)
    details: str | None = Field(None, max_length=2000)
    cras_id: int | None = None


class LogOut(BaseModel):
    id: int
    user_id: int | None = None
    user_name: str | None = None
    cras_id: int | None = None
    cras_nome: str | None = None
    action: str
    details: str | None = None
    date: datetime
    ip: str | None = None


class LogPage(BaseModel):
    results: list[LogOut]
    total: int
    page: int
    page_size: int
    total_pages: int
