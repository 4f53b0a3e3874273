"""SQLAlchemy engine, session factory and declarative base."""

from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


class Database:
    """Owns the engine and session factory for the lifetime of the process."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        connect_args = {"check_same_thread": False} if self.is_sqlite else {}
        self.engine = create_engine(url, echo=echo, connect_args=connect_args, pool_pre_ping=not self.is_sqlite)

        if self.is_sqlite:
            _configure_sqlite(self.engine)

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        # Import models so they are registered on Base.metadata
        from campus_events.domain.models.event import Event  # noqa: F401
        from campus_events.domain.models.registration import Registration  # noqa: F401
        from campus_events.domain.models.user import User  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def _configure_sqlite(engine) -> None:
    """Serialize SQLite write transactions and enforce foreign keys.

    pysqlite's own transaction handling defers BEGIN until the first write,
    which lets two readers both pass the capacity check. Emitting
    BEGIN IMMEDIATE takes the write lock when the transaction starts.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
