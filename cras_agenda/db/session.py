from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cras_agenda.core.settings import settings


def make_engine(url: str) -> Engine:
    """Engine do app. Em SQLite liga as FKs (CASCADE/SET NULL dos bloqueios e logs)."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    eng = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(eng, "connect")
    def _sqlite_fk_on(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    return eng


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Generator[Session, None, None]:
    """Uma sessão por request; rollback implícito no close se nada foi commitado."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
