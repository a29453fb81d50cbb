"""SQLite dialect."""

import logging
import sqlite3
import urllib.parse
from typing import ClassVar, Optional

from .base import Dialect

logger = logging.getLogger(__name__)


class SqliteDialect(Dialect):
    """Dialect for SQLite (scheme sqlite)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("sqlite",)
    paramstyle: ClassVar[str] = "qmark"

    def connect(self, url: str):
        parsed = urllib.parse.urlparse(url)
        path = (parsed.path or "")[1:] or parsed.hostname or ":memory:"
        logger.info("Connecting to SQLite database %s", path)
        # isolation_level=None leaves transaction control to explicit BEGIN/COMMIT
        conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def insert_ids(self, lastrowid: Optional[int], rowcount: int) -> list[int]:
        # SQLite reports the id of the last inserted row
        if not lastrowid or rowcount <= 0:
            return []
        return list(range(lastrowid - rowcount + 1, lastrowid + 1))

    def is_disconnect(self, error: BaseException) -> bool:
        return isinstance(error, sqlite3.ProgrammingError) and "closed" in str(error)
