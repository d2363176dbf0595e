"""
SQLite persistence for stored weather requests.

A single local file holds the `requests` table; its location comes from
WEATHERAPP_SQLITE_PATH.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from .settings import settings

DATABASE_URL = f"sqlite:///{settings.sqlite_path}"

# Sync routes (get/list/delete/export) run in the threadpool while async
# routes run on the event loop, so one connection may cross threads.
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def init_db(bind=engine) -> None:
    """Create the requests table if it does not exist yet."""
    # registers WeatherRequest on Base.metadata
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=bind)


def get_db():
    """Request-scoped session; closed once the response is sent."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
