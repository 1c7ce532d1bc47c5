"""
Database setup for Veche rooms.
One SQLite file by default (VECHE_DB_PATH moves it); DATABASE_URL wins when set,
e.g. a hosted Postgres.
"""

import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

DEFAULT_DB_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "veche.db")


def resolve_database_url(raw_url: str | None = None, db_path: str | None = None) -> str:
    """
    SQLAlchemy URL for the rooms database.
    Hosts hand out postgres:// URLs; SQLAlchemy 2.x only accepts postgresql://.
    """
    if raw_url:
        if raw_url.startswith("postgres://"):
            return raw_url.replace("postgres://", "postgresql://", 1)
        return raw_url
    return f"sqlite:///{db_path or DEFAULT_DB_PATH}"


DATABASE_URL = resolve_database_url(os.environ.get("DATABASE_URL"), os.environ.get("VECHE_DB_PATH"))

# SQLite connections are shared across the server's worker threads
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependency that yields a DB session, closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the rooms table if it is missing."""
    Base.metadata.create_all(bind=engine)
