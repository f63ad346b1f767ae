from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from cras_agenda.core import rate_limit
from cras_agenda.core.settings import settings
from cras_agenda.db import get_db
from cras_agenda.deps import require_permission
from cras_agenda.models.appointment import Appointment, AppointmentStatus
from cras_agenda.models.user import User
from cras_agenda.schemas.appointments import (
    AppointmentCreateIn,
    AppointmentOut,
    AppointmentPage,
    AppointmentUpdateIn,
)
from cras_agenda.services import appointments as svc
from cras_agenda.services.appointments import SEARCH_MAX_LENGTH, AppointmentFilters
from cras_agenda.services.export import appointments_csv

router = APIRouter(prefix="/appointments", tags=["appointments"])

SortField = Literal["data", "pessoa", "status", "motivo", "created_at", "entrevistador", "cras"]


def _filters(
    entrevistador_id: int | None = Query(None, ge=1),
    cras_id: int | None = Query(None, ge=1, description="Somente admin"),
    status_: AppointmentStatus | None = Query(None, alias="status"),
    data: date | None = Query(None, description="Dia local (YYYY-MM-DD)"),
    data_inicio: date | None = Query(None),
    data_fim: date | None = Query(None),
    search: str | None = Query(
        None,
        max_length=SEARCH_MAX_LENGTH,
        description="Busca por nome, CPF ou telefone",
    ),
) -> AppointmentFilters:
    return AppointmentFilters(
        entrevistador_id=entrevistador_id,
        cras_id=cras_id,
        status=status_,
        data=data,
        data_inicio=data_inicio,
        data_fim=data_fim,
        search=search,
    )


@router.post(
    "",
    response_model=AppointmentOut,
    status_code=201,
    dependencies=[Depends(rate_limit.rate_limit(rate_limit.CREATE))],
)
def create_appointment(
    payload: AppointmentCreateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("appointments", "create"))],
    db: Session = Depends(get_db),
):
    appt = svc.create_appointment(db, current_user, payload, request)
    return svc.appointment_out(appt)


@router.get("", response_model=AppointmentPage)
def list_appointments(
    current_user: Annotated[User, Depends(require_permission("appointments", "read"))],
    filters: Annotated[AppointmentFilters, Depends(_filters)],
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    sort_by: SortField = Query("data"),
    order: Literal["asc", "desc"] = Query("desc"),
    db: Session = Depends(get_db),
):
    return svc.list_appointments(
        db,
        current_user,
        filters,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
    )


@router.get("/export.csv")
def export_appointments_csv(
    current_user: Annotated[User, Depends(require_permission("appointments", "read"))],
    filters: Annotated[AppointmentFilters, Depends(_filters)],
    db: Session = Depends(get_db),
):
    rows = (
        svc.scoped_query(db, current_user, filters)
        .order_by(Appointment.data.asc(), Appointment.id.asc())
        .limit(settings.EXPORT_MAX_ROWS)
        .all()
    )
    filename = f"agendamentos_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S')}.csv"
    headers = {
        "Content-Type": "text/csv; charset=utf-8",
        "Content-Disposition": f'attachment; filename="{filename}"',
    }
    return Response(content=appointments_csv(rows), headers=headers)


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(
    appointment_id: int,
    current_user: Annotated[User, Depends(require_permission("appointments", "read"))],
    db: Session = Depends(get_db),
):
    return svc.appointment_out(svc.get_appointment_for(db, current_user, appointment_id))


@router.put("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdateIn,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("appointments", "update"))],
    db: Session = Depends(get_db),
):
    appt = svc.get_appointment_for(db, current_user, appointment_id)
    appt = svc.update_appointment(db, current_user, appt, payload, request)
    return svc.appointment_out(appt)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(rate_limit.rate_limit(rate_limit.DELETE))],
)
def delete_appointment(
    appointment_id: int,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("appointments", "delete"))],
    db: Session = Depends(get_db),
):
    appt = svc.get_appointment_for(db, current_user, appointment_id)
    svc.delete_appointment(db, current_user, appt, request)
    return


def _patch_status(
    db: Session, user: User, appointment_id: int, new_status: AppointmentStatus, request: Request
) -> AppointmentOut:
    appt = svc.get_appointment_for(db, user, appointment_id)
    return svc.appointment_out(svc.set_status(db, user, appt, new_status, request))


@router.patch("/{appointment_id}/confirm", response_model=AppointmentOut)
def confirm_presence(
    appointment_id: int,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("appointments", "update"))],
    db: Session = Depends(get_db),
):
    return _patch_status(db, current_user, appointment_id, AppointmentStatus.REALIZADO, request)


@router.patch("/{appointment_id}/unconfirm", response_model=AppointmentOut)
def remove_presence_confirmation(
    appointment_id: int,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("appointments", "update"))],
    db: Session = Depends(get_db),
):
    return _patch_status(db, current_user, appointment_id, AppointmentStatus.AGENDADO, request)


@router.patch("/{appointment_id}/absent", response_model=AppointmentOut)
def mark_absent(
    appointment_id: int,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("appointments", "update"))],
    db: Session = Depends(get_db),
):
    return _patch_status(db, current_user, appointment_id, AppointmentStatus.AUSENTE, request)
