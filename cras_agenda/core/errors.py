from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse

from cras_agenda.core.logging import get_logger


class BusinessError(Exception):
    """Violação de regra de negócio; vira resposta JSON com `detail` e `code`."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        code: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.headers = headers


class SlotTakenError(BusinessError):
    def __init__(self, when_label: str) -> None:
        super().__init__(
            f"Este horário ({when_label}) já está ocupado para este entrevistador. "
            "Por favor, escolha outro horário.",
            status_code=status.HTTP_409_CONFLICT,
            code="SLOT_TAKEN",
        )


class SlotBlockedError(BusinessError):
    def __init__(self, when_label: str) -> None:
        super().__init__(
            f"O horário ({when_label}) está bloqueado para este entrevistador.",
            status_code=status.HTTP_409_CONFLICT,
            code="SLOT_BLOCKED",
        )


async def business_error_handler(request: Request, exc: BusinessError) -> JSONResponse:
    get_logger().info(
        "business.rejected",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    body: dict[str, str] = {"detail": exc.message}
    if exc.code:
        body["code"] = exc.code
    return JSONResponse(body, status_code=exc.status_code, headers=exc.headers)
