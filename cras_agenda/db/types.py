from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy.dialects.postgresql import INET
from sqlalchemy.types import DateTime, String, TypeDecorator


class PortableINET(TypeDecorator):
    """Render PostgreSQL INET while keeping SQLite compatible."""

    impl = String(45)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(INET())
        return dialect.type_descriptor(String(45))


class UTCDateTime(TypeDecorator):
    """
    DateTime(timezone=True) que sempre devolve datetimes aware em UTC.
    SQLite não guarda offset; o valor gravado já é UTC e volta com tzinfo=UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("Datetime naive recebido. Sempre use datetimes timezone-aware.")
        value = value.astimezone(UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
