from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from cras_agenda.models.user import Role
from cras_agenda.utils.validators import validar_horario


def check_horarios(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    invalid = [h for h in value if not validar_horario(h)]
    if invalid:
        raise ValueError(f"Horários inválidos (use HH:MM): {', '.join(invalid)}")
    return sorted(set(value))


def check_dias(value: list[int] | None) -> list[int] | None:
    if value is None:
        return None
    if any(d < 0 or d > 6 for d in value):
        raise ValueError("Dias de atendimento devem estar entre 0 (domingo) e 6 (sábado)")
    return sorted(set(value))


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    matricula: str
    email: str | None = None
    role: Role
    cras_id: int | None = None
    horarios_disponiveis: list[str] = []
    dias_atendimento: list[int] = []
    is_active: bool


class _UserFields(BaseModel):
    @field_validator("name", "matricula", mode="before", check_fields=False)
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("horarios_disponiveis", check_fields=False)
    @classmethod
    def _horarios(cls, v):
        return check_horarios(v)

    @field_validator("dias_atendimento", check_fields=False)
    @classmethod
    def _dias(cls, v):
        return check_dias(v)


class UserCreateIn(_UserFields):
    name: str = Field(..., min_length=3, max_length=100)
    matricula: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=8, max_length=128)
    role: Role
    email: EmailStr | None = None
    cras_id: int | None = Field(
        None, description="Obrigatório para entrevistador e recepção; proibido para admin."
    )
    horarios_disponiveis: list[str] | None = None
    dias_atendimento: list[int] | None = None


class UserUpdateIn(_UserFields):
    name: str | None = Field(None, min_length=3, max_length=100)
    matricula: str | None = Field(None, min_length=1, max_length=50)
    password: str | None = Field(None, min_length=8, max_length=128)
    role: Role | None = None
    email: EmailStr | None = None
    cras_id: int | None = None
    horarios_disponiveis: list[str] | None = None
    dias_atendimento: list[int] | None = None
    is_active: bool | None = None
