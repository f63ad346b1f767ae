from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class StatsBucket(BaseModel):
    name: str
    realizados: int = 0
    ausentes: int = 0
    agendados: int = 0


class StatsTotals(BaseModel):
    realizados: int = 0
    ausentes: int = 0
    agendados: int = 0
    total: int = 0


class DashboardStatsOut(BaseModel):
    view_mode: Literal["mensal", "anual"]
    year: int
    month: int | None = None
    chart_data: list[StatsBucket]
    stats: StatsTotals
