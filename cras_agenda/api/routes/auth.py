from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from cras_agenda.audit.helpers import record_log
from cras_agenda.core import rate_limit
from cras_agenda.core.logging import get_logger
from cras_agenda.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    password_needs_rehash,
    verify_password,
)
from cras_agenda.core.settings import settings
from cras_agenda.db import get_db
from cras_agenda.deps import get_current_user
from cras_agenda.models.user import User
from cras_agenda.schemas.auth import LoginIn, LoginOut
from cras_agenda.schemas.users import UserOut

router = APIRouter(prefix="/auth", tags=["auth"])
log = get_logger(__name__)


def _set_auth_cookies(resp: Response, access: str, refresh: str) -> None:
    cookie_kwargs = dict(
        httponly=True,
        secure=bool(settings.SECURE_COOKIES),
        samesite="lax",
        path="/",
        domain=settings.COOKIE_DOMAIN or None,
    )
    resp.set_cookie(
        key="access_token",
        value=access,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **cookie_kwargs,
    )
    resp.set_cookie(
        key="refresh_token",
        value=refresh,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **cookie_kwargs,
    )


@router.post(
    "/login",
    response_model=LoginOut,
    dependencies=[Depends(rate_limit.rate_limit(rate_limit.LOGIN))],
)
def api_login(
    payload: LoginIn, request: Request, response: Response, db: Session = Depends(get_db)
) -> LoginOut:
    matricula = payload.matricula.strip()
    user: User | None = db.query(User).filter(User.matricula == matricula).one_or_none()
    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        log.warning("auth.login_failed", matricula=matricula)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas")

    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)

    access = create_access_token(str(user.id), user.role.value, user.cras_id)
    refresh = create_refresh_token(str(user.id))

    # Optionally set HttpOnly cookies (useful for frontends)
    if settings.USE_COOKIE_AUTH:
        _set_auth_cookies(response, access, refresh)

    record_log(
        db,
        user_id=user.id,
        cras_id=user.cras_id,
        action="login",
        details=f"Login realizado por {user.name}",
        request=request,
        autocommit=True,
    )
    log.info("auth.login", user_id=user.id, role=user.role.value)
    return LoginOut(
        access_token=access,
        refresh_token=refresh,
        token_type="bearer",
        user=UserOut.model_validate(user),
    )


@router.get("/me", response_model=UserOut)
def api_me(current_user: User = Depends(get_current_user)):
    return UserOut.model_validate(current_user)


@router.post("/logout")
def api_logout(request: Request, response: Response, db: Session = Depends(get_db)):
    # JWTs são stateless; o logout limpa cookies e registra quem saiu, se identificado
    try:
        user: User | None = get_current_user(request, db)
    except HTTPException:
        user = None
    if user is not None:
        record_log(
            db,
            user_id=user.id,
            cras_id=user.cras_id,
            action="logout",
            details=f"Logout realizado por {user.name}",
            request=request,
            autocommit=True,
        )
    for k in ("access_token", "refresh_token"):
        response.delete_cookie(k, path="/", domain=settings.COOKIE_DOMAIN or None)
    return {"ok": True}


@router.post("/refresh", response_model=LoginOut)
def api_refresh(request: Request, response: Response, db: Session = Depends(get_db)) -> LoginOut:
    # Expect refresh token in Authorization: Bearer <token> or cookie
    auth = request.headers.get("Authorization")
    token: str | None = None
    if auth and auth.lower().startswith("bearer "):
        token = auth.split(" ", 1)[1]
    if not token:
        token = request.cookies.get("refresh_token")
    if not token:
        raise HTTPException(status_code=401, detail="Refresh token ausente")

    try:
        payload = decode_token(token, expected_type="refresh")
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Refresh token inválido") from e

    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        raise HTTPException(status_code=401, detail="Refresh token malformado")

    user = db.get(User, int(sub))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Usuário inativo ou inexistente")

    access = create_access_token(str(user.id), user.role.value, user.cras_id)
    refresh = create_refresh_token(str(user.id))
    if settings.USE_COOKIE_AUTH:
        _set_auth_cookies(response, access, refresh)
    return LoginOut(access_token=access, refresh_token=refresh)
