from typing import Any, Dict, Iterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import Settings


class Database:
    """Owns the engine (connection pool) for the lifetime of the process."""

    def __init__(self, url: str, echo: bool = False) -> None:
        kwargs: Dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every session sees an empty database.
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.url = url
        self.engine = create_engine(url, **kwargs)

        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the database from application settings."""
        return cls(settings.database_url, echo=settings.database_echo)

    def create_all(self) -> None:
        """Create database tables."""
        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        """Open a new session on the engine."""
        return Session(self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """Turn on foreign key enforcement for each new SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Dependency to get DB session
def get_session(request: Request) -> Iterator[Session]:
    """Context-managed session bound to the application's database."""
    database: Database = request.app.state.db
    with database.session() as session:
        yield session
