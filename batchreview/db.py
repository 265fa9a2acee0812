"""Database engine, write-through persistence and session management."""
import logging
import os
import sqlite3
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from batchreview.exceptions import PersistenceError

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class StorageEngine:
    """
    In-memory SQLite database mirrored to a single snapshot file.

    All state lives in one in-memory connection. Every mutation commits in
    memory and then rewrites the whole snapshot file before returning, so a
    fresh engine initialized from the same path observes exactly the last
    successfully flushed state.

    A single lock covers reads, mutations and flushes.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Args:
            db_path: Snapshot file location. None keeps the store in memory only.
        """
        self.db_path = Path(db_path) if db_path is not None else None
        self._lock = threading.RLock()
        self._engine = None
        self._session_factory = None
        self._dbapi_connection = None

    def initialize(self) -> None:
        """
        Build the in-memory database, loading the snapshot file when present.

        Safe to call again: an existing snapshot is re-loaded over the
        in-memory state, which holds the same data unless a flush failed.

        Raises:
            sqlite3.DatabaseError: If the snapshot file is not a readable database
        """
        with self._lock:
            if self._engine is None:
                self._engine = create_engine(
                    "sqlite://",
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                    echo=False,  # Set to True for SQL debugging
                )
                event.listen(self._engine, "connect", self._on_connect)
                self._session_factory = sessionmaker(
                    self._engine,
                    expire_on_commit=False,
                    autoflush=False,
                )
                # Open the single pooled connection now so it is captured
                with self._engine.connect():
                    pass

            snapshot_exists = self.db_path is not None and self.db_path.exists()
            if snapshot_exists:
                self._load_snapshot()

            # Import models so their tables are registered on Base.metadata
            from batchreview import models  # noqa: F401
            Base.metadata.create_all(self._engine)

            if not snapshot_exists:
                self.persist()

            logger.info(
                "Database initialized (%s)",
                self.db_path if self.db_path is not None else "memory only",
            )

    def _on_connect(self, dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        self._dbapi_connection = dbapi_connection

    def _load_snapshot(self) -> None:
        source = sqlite3.connect(str(self.db_path))
        try:
            source.backup(self._dbapi_connection)
        finally:
            source.close()
        logger.debug("Loaded snapshot from %s", self.db_path)

    def _require_initialized(self) -> None:
        if self._engine is None:
            raise RuntimeError("StorageEngine.initialize() has not been called")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Read-only session. Never triggers a flush."""
        with self._lock:
            self._require_initialized()
            session = self._session_factory()
            try:
                yield session
            finally:
                session.rollback()
                session.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Mutating session: commit and persist on success, roll back on error.

        Raises:
            PersistenceError: If the commit succeeded but the snapshot could not be written
        """
        with self._lock:
            self._require_initialized()
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except BaseException:
                session.rollback()
                raise
            finally:
                session.close()
            self.persist()

    def execute(self, statement, params: Optional[dict] = None) -> Optional[List[Row]]:
        """
        Apply one mutating statement and flush.

        Returns:
            Fetched rows if the statement returns rows (e.g. RETURNING), else None
        """
        with self.transaction() as session:
            result = session.execute(statement, params)
            return result.all() if result.returns_rows else None

    def query(self, statement, params: Optional[dict] = None) -> List[Row]:
        """Run a read-only statement against the in-memory state."""
        with self.session() as session:
            return session.execute(statement, params).all()

    def persist(self) -> None:
        """
        Atomically overwrite the snapshot file with the full in-memory state.

        The database is copied into a temporary file in the same directory,
        which then replaces the snapshot. The directory is fsynced so the
        rename itself survives a power loss.

        Raises:
            PersistenceError: If the file could not be written
        """
        if self.db_path is None:
            return

        with self._lock:
            self._require_initialized()
            tmp_path = None
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    prefix=f".{self.db_path.name}.",
                    suffix=".tmp",
                    dir=str(self.db_path.parent),
                )
                os.close(fd)
                target = sqlite3.connect(tmp_path)
                try:
                    self._dbapi_connection.backup(target)
                finally:
                    target.close()
                os.replace(tmp_path, self.db_path)
                tmp_path = None
                self._sync_directory()
            except (OSError, sqlite3.Error) as e:
                if tmp_path is not None and os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise PersistenceError(f"Failed to persist database to {self.db_path}: {e}") from e

            logger.debug("Persisted database to %s", self.db_path)

    def _sync_directory(self) -> None:
        # Directories cannot be opened for fsync on Windows
        if not hasattr(os, "O_DIRECTORY"):
            return
        fd = os.open(str(self.db_path.parent), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

    def close(self) -> None:
        """Dispose of the in-memory database. Unflushed state is lost."""
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                self._session_factory = None
                self._dbapi_connection = None


def get_storage_engine(request: Request) -> StorageEngine:
    """Dependency for FastAPI to get the process-wide storage engine."""
    return request.app.state.storage_engine
