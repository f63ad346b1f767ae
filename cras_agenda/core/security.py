from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from cras_agenda.core.settings import settings

pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def password_needs_rehash(password_hash: str) -> bool:
    # hashes bcrypt antigos migram para argon2 no próximo login
    return pwd_context.needs_update(password_hash)


def validate_password_policy(password: str) -> None:
    """Levanta ValueError se a senha não tiver entre 8 e 128 caracteres."""
    size = len(password or "")
    if size < PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Senha deve ter no mínimo {PASSWORD_MIN_LENGTH} caracteres."
        )
    if size > PASSWORD_MAX_LENGTH:
        raise ValueError(
            f"Senha deve ter no máximo {PASSWORD_MAX_LENGTH} caracteres."
        )


def _now() -> datetime:
    return datetime.now(UTC)


def create_token(
    sub: str, type_: str, expires_delta: timedelta, claims: dict[str, Any] | None = None
) -> str:
    now = _now()
    payload: dict[str, Any] = {
        **(claims or {}),
        "sub": sub,
        "type": type_,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def create_access_token(sub: str, role: str | None = None, cras_id: int | None = None) -> str:
    """Papel e CRAS vão no token só como informação para o front; a API sempre relê o usuário."""
    claims = {"role": role, "cras_id": cras_id} if role else None
    return create_token(
        sub, "access", timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES), claims
    )


def create_refresh_token(sub: str) -> str:
    return create_token(
        sub, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )


def decode_token(token: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError as e:
        raise ValueError("Token inválido.") from e
    if payload.get("type") != expected_type:
        raise ValueError("Tipo de token inválido.")
    return payload
