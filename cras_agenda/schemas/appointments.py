from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cras_agenda.models.appointment import AppointmentStatus, Motivo
from cras_agenda.utils.tz import to_utc
from cras_agenda.utils.validators import only_digits, validar_cpf, validar_telefone

OBSERVACOES_MAX = 2000


class _AppointmentFields(BaseModel):
    @field_validator("pessoa", "observacoes", mode="before", check_fields=False)
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("cpf", check_fields=False)
    @classmethod
    def _cpf(cls, v):
        if v is None:
            return v
        if not validar_cpf(v):
            raise ValueError("CPF inválido")
        return only_digits(v)

    @field_validator("telefone1", check_fields=False)
    @classmethod
    def _telefone1(cls, v):
        if v is None:
            return v
        if not validar_telefone(v):
            raise ValueError("Telefone inválido: informe DDD + número (10 ou 11 dígitos)")
        return only_digits(v)

    @field_validator("telefone2", mode="before", check_fields=False)
    @classmethod
    def _telefone2(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if not validar_telefone(v):
            raise ValueError("Telefone 2 inválido: informe DDD + número (10 ou 11 dígitos)")
        return only_digits(v)

    @field_validator("data", check_fields=False)
    @classmethod
    def _data(cls, v):
        # sem offset: interpretado no fuso local
        return to_utc(v) if v is not None else v


class AppointmentCreateIn(_AppointmentFields):
    entrevistador_id: int | None = Field(
        None, ge=1, description="Entrevistador ignora e usa o próprio id."
    )
    pessoa: str = Field(..., min_length=1, max_length=160)
    cpf: str
    telefone1: str
    telefone2: str | None = None
    motivo: Motivo
    data: datetime
    observacoes: str | None = Field(None, max_length=OBSERVACOES_MAX)


class AppointmentUpdateIn(_AppointmentFields):
    pessoa: str | None = Field(None, min_length=1, max_length=160)
    cpf: str | None = None
    telefone1: str | None = None
    telefone2: str | None = None
    motivo: Motivo | None = None
    status: AppointmentStatus | None = None
    data: datetime | None = None
    observacoes: str | None = Field(None, max_length=OBSERVACOES_MAX)


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entrevistador_id: int
    entrevistador_nome: str | None = None
    cras_id: int
    cras_nome: str | None = None
    pessoa: str
    cpf: str
    telefone1: str
    telefone2: str | None = None
    motivo: Motivo
    status: AppointmentStatus
    data: datetime
    observacoes: str | None = None
    created_by_id: int | None = None
    updated_by_id: int | None = None
    created_at: datetime
    updated_at: datetime


class AppointmentPage(BaseModel):
    results: list[AppointmentOut]
    total: int
    page: int
    page_size: int
    total_pages: int
