"""Keyed blob storage for the registration store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, select, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from coursereg.registry.models import Base, StoredCollection

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


class Database:
    """Database connection manager.

    Keeps each collection as one text blob in an SQLite file with WAL mode
    enabled, the way a browser keeps one localStorage entry per key.
    """

    def __init__(self, db_path: str = "coursereg.db") -> None:
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory DB.
        """
        self.db_path = db_path
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if self.db_path == ":memory:":
                # StaticPool keeps the single in-memory connection alive
                self._engine = create_engine(
                    "sqlite:///:memory:",
                    echo=False,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._engine = create_engine(f"sqlite:///{self.db_path}", echo=False)

            @event.listens_for(self._engine, "connect")
            def set_sqlite_pragma(dbapi_connection: object, _connection_record: object) -> None:
                cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

            logger.debug("Opened database at %s", self.db_path)

        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.session_factory()

    def read_blob(self, key: str) -> str | None:
        """Return the payload stored under ``key``, or None if absent."""
        with self.get_session() as session:
            stored = session.get(StoredCollection, key)
            return None if stored is None else stored.payload

    def write_blobs(self, blobs: Mapping[str, str]) -> None:
        """Insert or replace several payloads in one commit.

        Args:
            blobs: Mapping of storage key to serialized payload
        """
        with self.get_session() as session:
            for key, payload in blobs.items():
                stored = session.get(StoredCollection, key)
                if stored is None:
                    session.add(StoredCollection(key=key, payload=payload))
                else:
                    stored.payload = payload
            session.commit()
        logger.debug("Persisted %s", ", ".join(blobs))

    def write_blob(self, key: str, payload: str) -> None:
        """Insert or replace the payload stored under ``key``."""
        self.write_blobs({key: payload})

    def list_keys(self) -> list[str]:
        """Return all stored keys, sorted."""
        with self.get_session() as session:
            stmt = select(StoredCollection.key).order_by(StoredCollection.key)
            return list(session.execute(stmt).scalars().all())

    def is_wal_mode(self) -> bool:
        """Check if WAL mode is enabled.

        In-memory databases always report "memory".
        """
        with self.engine.connect() as conn:
            result = conn.execute(text("PRAGMA journal_mode"))
            mode = result.scalar()
            return mode == "wal"

    def close(self) -> None:
        """Close the database connection."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
