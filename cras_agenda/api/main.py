"""API router setup."""
from fastapi import APIRouter

from cras_agenda.api.routes import (
    agenda,
    appointments,
    auth,
    blocked_slots,
    cras,
    logs,
    stats,
    users,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(agenda.router)
api_router.include_router(appointments.router)
api_router.include_router(blocked_slots.router)
api_router.include_router(cras.router)
api_router.include_router(logs.router)
api_router.include_router(stats.router)
api_router.include_router(users.router)
