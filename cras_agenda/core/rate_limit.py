"""
Rate limiting em memória (janela fixa por chave).

Cada processo mantém seu próprio contador; suficiente para uma instância única.
"""
from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from fastapi import Request, status

from cras_agenda.audit.helpers import get_client_ip
from cras_agenda.core.errors import BusinessError
from cras_agenda.core.logging import get_logger
from cras_agenda.core.settings import settings

log = get_logger(__name__)

CLEANUP_INTERVAL_SECONDS = 60


@dataclass
class _Window:
    count: int
    reset_time: float


class FixedWindowRateLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_INTERVAL_SECONDS:
            return
        expired = [k for k, w in self._windows.items() if now >= w.reset_time]
        for k in expired:
            del self._windows[k]
        self._last_cleanup = now

    def hit(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        """
        Registra uma requisição para `key`.
        Retorna (permitido, segundos até o reset da janela).
        """
        now = self._clock()
        with self._lock:
            self._cleanup(now)
            window = self._windows.get(key)
            if window is None or now >= window.reset_time:
                window = _Window(count=0, reset_time=now + window_seconds)
                self._windows[key] = window
            window.count += 1
            retry_after = max(int(window.reset_time - now), 1)
            return window.count <= limit, retry_after

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


limiter = FixedWindowRateLimiter()


@dataclass(frozen=True)
class RateLimitRule:
    scope: str
    code: str
    message: str

    def limits(self) -> tuple[int, int]:
        prefix = self.scope.upper()
        return (
            getattr(settings, f"{prefix}_RATE_LIMIT"),
            getattr(settings, f"{prefix}_RATE_WINDOW_SECONDS"),
        )


LOGIN = RateLimitRule(
    scope="login",
    code="TOO_MANY_LOGIN_ATTEMPTS",
    message="Muitas tentativas de login. Tente novamente mais tarde.",
)
CREATE = RateLimitRule(
    scope="create",
    code="TOO_MANY_CREATES",
    message="Muitas criações em pouco tempo. Aguarde antes de tentar novamente.",
)
DELETE = RateLimitRule(
    scope="delete",
    code="TOO_MANY_DELETES",
    message="Muitas exclusões em pouco tempo. Aguarde antes de tentar novamente.",
)


def rate_limit(rule: RateLimitRule) -> Callable[[Request], None]:
    """Dependency do FastAPI: aplica `rule` por IP do cliente."""

    def dependency(request: Request) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        limit, window = rule.limits()
        key = f"{rule.scope}:{get_client_ip(request) or 'unknown'}"
        allowed, retry_after = limiter.hit(key, limit, window)
        if not allowed:
            log.warning("rate_limit.exceeded", scope=rule.scope, key=key)
            raise BusinessError(
                rule.message,
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                code=rule.code,
                headers={"Retry-After": str(retry_after)},
            )

    return dependency
