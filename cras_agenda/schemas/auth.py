from __future__ import annotations

from pydantic import BaseModel, Field

from cras_agenda.schemas.users import UserOut


class LoginIn(BaseModel):
    matricula: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class LoginOut(BaseModel):
    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str = "bearer"
    user: UserOut | None = None
