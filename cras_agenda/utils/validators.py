"""Validação e formatação de documentos brasileiros (CPF, telefone) e campos de agenda."""
from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"\D")
_EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_HORARIO_REGEX = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def only_digits(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


def _cpf_digit(digits: str, weight_start: int) -> int:
    total = sum(int(d) * w for d, w in zip(digits, range(weight_start, 1, -1)))
    resto = 11 - (total % 11)
    return 0 if resto >= 10 else resto


def cpf_check_digits(base: str) -> str:
    """Dígitos verificadores para os 9 primeiros dígitos de um CPF."""
    d1 = _cpf_digit(base[:9], 10)
    d2 = _cpf_digit(base[:9] + str(d1), 11)
    return f"{d1}{d2}"


def validar_cpf(cpf: str | None) -> bool:
    """
    Dígitos verificadores (módulo 11). Rejeita sequências de um único dígito
    (000.000.000-00, 111.111.111-11, ...), que passam no cálculo.
    """
    digits = only_digits(cpf)
    if len(digits) != 11:
        return False
    if digits == digits[0] * 11:
        return False
    return cpf_check_digits(digits[:9]) == digits[9:]


def validar_telefone(telefone: str | None) -> bool:
    # (DD) 9XXXX-XXXX ou (DD) XXXX-XXXX
    return len(only_digits(telefone)) in (10, 11)


def validar_email(email: str | None) -> bool:
    return bool(email) and bool(_EMAIL_REGEX.match(email))


def validar_horario(horario: str | None) -> bool:
    return bool(horario) and bool(_HORARIO_REGEX.match(horario))


def formatar_cpf(cpf: str | None) -> str:
    d = only_digits(cpf)[:11]
    if len(d) <= 3:
        return d
    if len(d) <= 6:
        return f"{d[:3]}.{d[3:]}"
    if len(d) <= 9:
        return f"{d[:3]}.{d[3:6]}.{d[6:]}"
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"


def formatar_telefone(telefone: str | None) -> str:
    d = only_digits(telefone)[:11]
    if not d:
        return ""
    if len(d) <= 2:
        return f"({d}"
    if len(d) <= 6:
        return f"({d[:2]}) {d[2:]}"
    if len(d) <= 10:
        return f"({d[:2]}) {d[2:6]}-{d[6:]}"
    return f"({d[:2]}) {d[2:7]}-{d[7:]}"
