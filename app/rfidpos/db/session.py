from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.rfidpos.core.config import settings


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(database_url, echo=False, future=True, connect_args=connect_args)


def build_session_factory(database_url: str | None = None):
    return sessionmaker(
        bind=build_engine(database_url or settings.DATABASE_URL),
        autoflush=False,
        autocommit=False,
        future=True,
    )
