from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cras_agenda.db import get_db
from cras_agenda.deps import require_permission
from cras_agenda.models.user import User
from cras_agenda.schemas.stats import DashboardStatsOut
from cras_agenda.services.stats import dashboard_stats
from cras_agenda.utils.tz import LOCAL_TZ

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/dashboard", response_model=DashboardStatsOut)
def get_dashboard_stats(
    current_user: Annotated[User, Depends(require_permission("stats", "read"))],
    view_mode: Literal["mensal", "anual"] = Query("anual"),
    month: int | None = Query(None, ge=1, le=12, description="1-12; padrão: mês atual"),
    year: int | None = Query(None, ge=2000, le=2100),
    entrevistador_id: int | None = Query(None, ge=1),
    cras_id: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    today = datetime.now(LOCAL_TZ).date()
    return dashboard_stats(
        db,
        current_user,
        view_mode=view_mode,
        year=year or today.year,
        month=month or today.month,
        entrevistador_id=entrevistador_id,
        cras_id=cras_id,
    )
