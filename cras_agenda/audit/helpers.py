from __future__ import annotations

from datetime import UTC, datetime

from fastapi import Request
from sqlalchemy.orm import Session

from cras_agenda.core.logging import get_logger
from cras_agenda.models.log import Log

log = get_logger(__name__)


def get_client_ip(request: Request) -> str | None:
    # Respeita proxy → 1º IP do X-Forwarded-For
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return request.client.host if request.client else None


def record_log(
    db: Session,
    *,
    user_id: int | None,
    cras_id: int | None,
    action: str,
    details: str | None = None,
    request: Request | None = None,
    autocommit: bool = False,
) -> Log:
    """
    Se autocommit=False (padrão): inclui o log na MESMA transação do seu CRUD.
    Se autocommit=True: faz commit isolado só do log (bom para login/logout).
    """
    entry = Log(
        user_id=user_id,
        cras_id=cras_id,
        action=action,
        details=details,
        date=datetime.now(UTC),
        ip=get_client_ip(request) if request is not None else None,
    )
    db.add(entry)
    if autocommit:
        try:
            db.commit()
        except Exception:
            db.rollback()  # falha em log não deve derrubar o request
            log.exception("audit.log_failed", action=action, user_id=user_id)
    return entry
