"""Persistence of the global "last successful sync" cursor"""

import logging
import os
import tempfile
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from boardsync.config import settings
from boardsync.models import SyncCursor
from boardsync.services.errors import CursorError
from boardsync.services.records import normalize_utc_naive, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

GLOBAL_CURSOR = "global"


def _parse_cursor(raw: str, where: str) -> datetime:
    try:
        return parse_timestamp(raw)
    except (TypeError, ValueError) as e:
        raise CursorError(f"Stored sync cursor in {where} is not a timestamp: {raw!r}") from e


class _CursorStoreBase:
    """Shared read/bootstrap/advance logic; subclasses provide _load/_store."""

    def _load(self) -> Optional[datetime]:
        raise NotImplementedError

    def _store(self, value: datetime) -> None:
        raise NotImplementedError

    def read(self) -> Optional[datetime]:
        """Return the persisted cursor, or None if no run ever completed."""
        return self._load()

    def bootstrap(self, now: Optional[datetime] = None) -> datetime:
        """Establish the first baseline. The caller must not transfer any data this run."""
        value = normalize_utc_naive(now) or utcnow()
        self._store(value)
        logger.info(f"Initialized sync cursor at {value.isoformat()}")
        return value

    def advance(self, now: Optional[datetime] = None) -> datetime:
        """Persist a new cursor after a successful run. Never moves backwards."""
        value = normalize_utc_naive(now) or utcnow()
        current = self._load()
        if current is not None and value < current:
            logger.warning(
                f"Refusing to move sync cursor back from {current.isoformat()} to {value.isoformat()}"
            )
            return current
        self._store(value)
        logger.info(f"Advanced sync cursor to {value.isoformat()}")
        return value


class DatabaseCursorStore(_CursorStoreBase):
    """Cursor kept as a single row of the sync_cursors table."""

    def __init__(self, db: Session, name: str = GLOBAL_CURSOR):
        self.db = db
        self.name = name

    def _row(self) -> Optional[SyncCursor]:
        return self.db.query(SyncCursor).filter(SyncCursor.name == self.name).first()

    def _load(self) -> Optional[datetime]:
        try:
            row = self._row()
        except SQLAlchemyError as e:
            raise CursorError(f"Failed to read sync cursor '{self.name}': {e}") from e
        if row is None:
            return None
        return _parse_cursor(row.value, f"sync_cursors[{self.name}]")

    def _store(self, value: datetime) -> None:
        try:
            row = self._row()
            if row is None:
                row = SyncCursor(name=self.name, value=value.isoformat())
                self.db.add(row)
            else:
                row.value = value.isoformat()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise CursorError(f"Failed to write sync cursor '{self.name}': {e}") from e


class FileCursorStore(_CursorStoreBase):
    """Cursor kept as an ISO-8601 line in a text file.

    Writes go to a temporary file in the same directory which then replaces the
    cursor file, so readers never observe a half-written timestamp.
    """

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Optional[datetime]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise CursorError(f"Failed to read sync cursor file {self.path}: {e}") from e
        return _parse_cursor(raw, self.path)

    def _store(self, value: datetime) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=directory, prefix=".cursor-", delete=False
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(value.isoformat() + "\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise CursorError(f"Failed to write sync cursor file {self.path}: {e}") from e


def get_cursor_store(db: Session):
    """Build the cursor store selected by settings.cursor_backend."""
    backend = (settings.cursor_backend or "database").strip().lower()
    if backend == "database":
        return DatabaseCursorStore(db)
    if backend == "file":
        return FileCursorStore(settings.cursor_file)
    raise CursorError(f"Unknown cursor backend '{settings.cursor_backend}'")
