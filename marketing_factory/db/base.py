from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from marketing_factory.config import settings


def _engine_connect_args() -> dict:
    if settings.DATABASE_URL.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    future=True,
    pool_pre_ping=True,
    connect_args=_engine_connect_args(),
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


class Base(DeclarativeBase):
    pass


def init_db() -> None:
    from marketing_factory.db import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
