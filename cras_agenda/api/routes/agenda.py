from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cras_agenda.db import get_db
from cras_agenda.deps import require_permission
from cras_agenda.models.user import User
from cras_agenda.schemas.agenda import DayAgendaOut, FreeSlotsOut, SlotAppointment, SlotOut
from cras_agenda.services.agenda import free_slots as agenda_free_slots
from cras_agenda.services.agenda import get_day_agenda

router = APIRouter(prefix="/agenda", tags=["agenda"])


@router.get("/{entrevistador_id}", response_model=DayAgendaOut)
def day_agenda(
    entrevistador_id: int,
    current_user: Annotated[User, Depends(require_permission("appointments", "read"))],
    data: date = Query(..., description="Dia local (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    """
    Horários do dia para o entrevistador, com o status de cada um
    (livre, ocupado, bloqueado, indisponivel).
    """
    agenda = get_day_agenda(db, current_user, entrevistador_id, data)
    slots = []
    for s in agenda.slots:
        appt = s.appointment
        slots.append(
            SlotOut(
                horario=s.horario,
                inicio=s.inicio,
                status=s.status,
                passado=s.passado,
                appointment=(
                    SlotAppointment(
                        id=appt.id, pessoa=appt.pessoa, motivo=appt.motivo, status=appt.status
                    )
                    if appt is not None
                    else None
                ),
                blocked_slot_id=s.blocked.id if s.blocked is not None else None,
                blocked_motivo=s.blocked.motivo if s.blocked is not None else None,
            )
        )
    return DayAgendaOut(
        entrevistador_id=entrevistador_id,
        data=agenda.data,
        dia_atendimento=agenda.dia_atendimento,
        slots=slots,
        contagem=agenda.contagem(),
    )


@router.get("/{entrevistador_id}/livres", response_model=FreeSlotsOut)
def free_slots(
    entrevistador_id: int,
    current_user: Annotated[User, Depends(require_permission("appointments", "read"))],
    data: date = Query(..., description="Dia local (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    horarios = agenda_free_slots(db, current_user, entrevistador_id, data)
    return FreeSlotsOut(entrevistador_id=entrevistador_id, data=data, horarios=horarios)
