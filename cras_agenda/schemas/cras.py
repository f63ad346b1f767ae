from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CrasFields(BaseModel):
    @field_validator("nome", "endereco", "telefone", mode="before", check_fields=False)
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class CrasCreateIn(_CrasFields):
    nome: str = Field(..., min_length=1, max_length=160)
    endereco: str = Field(..., min_length=1, max_length=255)
    telefone: str | None = Field(None, max_length=20)


class CrasUpdateIn(_CrasFields):
    nome: str | None = Field(None, min_length=1, max_length=160)
    endereco: str | None = Field(None, min_length=1, max_length=255)
    telefone: str | None = Field(None, max_length=20)


class CrasOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str
    endereco: str
    telefone: str | None = None
