from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from cras_agenda.core.settings import settings

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)
UTC = UTC


def ensure_aware_utc(dt: datetime) -> datetime:
    """
    Garante que dt é timezone-aware em UTC.
    - Se já vier aware: converte para UTC.
    - Se vier naive: ERRO (evita gravar errado).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Datetime naive recebido. Sempre use datetimes timezone-aware."
        )
    return dt.astimezone(UTC)


def to_utc(dt: datetime, tz: ZoneInfo | None = None) -> datetime:
    """
    Converte um datetime (naive ou aware) para UTC.
    - Naive: assume tz fornecida (padrão: fuso local configurado).
    - Aware: só converte para UTC.
    """
    tz = tz or LOCAL_TZ
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(UTC)


def to_local(dt_utc: datetime, tz: ZoneInfo | None = None) -> datetime:
    """
    Converte um datetime UTC (aware) para TZ local (aware).
    """
    tz = tz or LOCAL_TZ
    if dt_utc.tzinfo is None:
        raise ValueError("Esperava datetime UTC timezone-aware.")
    return dt_utc.astimezone(tz)


def combine_local_to_utc(d: date, t: time, tz: ZoneInfo | None = None) -> datetime:
    """
    Combina uma data+hora interpretadas na TZ local e retorna em UTC (aware).
    """
    tz = tz or LOCAL_TZ
    if t.tzinfo is not None:
        t = time(t.hour, t.minute, t.second, t.microsecond)
    local_dt = datetime.combine(d, t).replace(tzinfo=tz)
    return local_dt.astimezone(UTC)


def split_utc_to_local(dtu: datetime, tz: ZoneInfo | None = None) -> tuple[date, time]:
    """
    Quebra um datetime UTC em (data_local, hora_local) na TZ escolhida.
    """
    tz = tz or LOCAL_TZ
    if dtu.tzinfo is None:
        raise ValueError("Esperava datetime UTC timezone-aware.")
    loc = dtu.astimezone(tz)
    return loc.date(), loc.timetz()


def local_day_bounds_utc(d: date, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """[início, fim) do dia local `d`, em UTC."""
    tz = tz or LOCAL_TZ
    start_local = datetime.combine(d, time.min).replace(tzinfo=tz)
    end_local = datetime.combine(d + timedelta(days=1), time.min).replace(tzinfo=tz)
    return start_local.astimezone(UTC), end_local.astimezone(UTC)


def js_weekday(d: date) -> int:
    """Dia da semana com domingo=0 ... sábado=6."""
    return (d.weekday() + 1) % 7


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def hhmm(dt_utc: datetime, tz: ZoneInfo | None = None) -> str:
    return to_local(dt_utc, tz).strftime("%H:%M")


def format_datetime_br(dt_utc: datetime, tz: ZoneInfo | None = None) -> str:
    """dd/mm/aaaa HH:MM na TZ local."""
    return to_local(dt_utc, tz).strftime("%d/%m/%Y %H:%M")


def iso_utc(dt: datetime) -> str:
    """
    Serializa em ISO 8601 sempre em UTC com sufixo 'Z'.
    """
    return ensure_aware_utc(dt).isoformat().replace("+00:00", "Z")
