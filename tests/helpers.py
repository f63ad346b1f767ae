"""Constantes e utilitários de data compartilhados pelos testes."""
from datetime import date, datetime, time, timedelta

from cras_agenda.utils.tz import combine_local_to_utc, iso_utc

PASSWORD = "TestPass123!"
VALID_CPF = "52998224725"
OTHER_CPF = "11144477735"


def next_weekday(weekday: int, weeks_ahead: int = 1) -> date:
    """Próxima data (>= 1 semana à frente) com o weekday Python informado (0=segunda)."""
    today = date.today()
    days = (weekday - today.weekday()) % 7
    return today + timedelta(days=days + 7 * weeks_ahead)


def slot_utc(day: date, hhmm: str) -> datetime:
    hh, mm = hhmm.split(":")
    return combine_local_to_utc(day, time(int(hh), int(mm)))


def slot_iso(day: date, hhmm: str) -> str:
    return iso_utc(slot_utc(day, hhmm))
