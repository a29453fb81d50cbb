"""Connection pools, read/write routing, and the named database registry.

A Router holds one PooledConnection per configured URL: primaries form the
write pool, replicas the read pool. Each statement is routed on its leading
keyword, then dispatched round-robin inside the chosen pool.
"""

import logging
import threading
import time
import urllib.parse
from contextlib import contextmanager
from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field

from .config import DatabaseConfig, DatabaseURL, resolve_url
from .dialects import Dialect, get_dialect_for_scheme
from .placeholders import translate_placeholders

logger = logging.getLogger(__name__)

WRITE_KEYWORDS = frozenset({
    "INSERT",
    "UPDATE",
    "DELETE",
    "REPLACE",
    "CREATE",
    "ALTER",
    "DROP",
    "TRUNCATE",
    "RENAME",
    "LOCK",
    "UNLOCK",
})
"""Leading keywords of statements sent to the primaries."""


def is_write_statement(sql: str) -> bool:
    """Whether a statement must run on a primary, judging by its first keyword."""
    stripped = sql.lstrip(" \t\r\n(")
    keyword = stripped.split(None, 1)[0].upper() if stripped else ""
    return keyword in WRITE_KEYWORDS


class ExecutionResult(BaseModel):
    """What one statement returned."""

    columns: tuple[str, ...] = ()
    """Result column names; empty for statements returning no rows."""
    rows: list[tuple[Any, ...]] = Field(default_factory=list)
    rowcount: int = -1
    lastrowid: Optional[int] = None
    insert_ids: tuple[int, ...] = ()
    """Ids generated by a (multi-row) INSERT, in row order."""


class PooledConnection:
    """Raw driver connections to one database URL.

    Connections are opened on demand and kept idle between statements; each
    statement (or transaction) checks one out, so callers never share one.
    """

    def __init__(self, url: DatabaseURL):
        self._url = url
        self.url = resolve_url(url)
        self.dialect: Dialect = get_dialect_for_scheme(urllib.parse.urlparse(self.url).scheme)
        self.is_healthy = True
        self.last_used: Optional[float] = None
        self.last_check: Optional[float] = None
        self._idle: list[Any] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        parsed = urllib.parse.urlparse(self.url)
        return f"PooledConnection({parsed.scheme}://{parsed.hostname or ''}{parsed.path})"

    def checkout(self) -> Any:
        """Take an idle raw connection, or open a new one."""
        with self._lock:
            if not self.is_healthy:
                stale, self._idle = self._idle, []
            else:
                stale = []
            raw = self._idle.pop() if self._idle else None
        for connection in stale:
            self._close(connection)
        if raw is None:
            self.url = resolve_url(self._url)
            raw = self.dialect.connect(self.url)
            logger.info("Opened connection to %r", self)
            self.is_healthy = True
        self.last_used = time.time()
        return raw

    def checkin(self, raw: Any, discard: bool = False) -> None:
        """Give a raw connection back; discarded connections are closed."""
        if discard or not self.is_healthy:
            self._close(raw)
            return
        with self._lock:
            self._idle.append(raw)

    @staticmethod
    def _close(raw: Any) -> None:
        try:
            raw.close()
        except Exception:  # pylint: disable=broad-exception-caught
            logger.debug("Ignoring error while closing a dead connection", exc_info=True)

    def run(self, raw: Any, sql: str, parameters: Sequence[Any] = ()) -> ExecutionResult:
        """Execute one statement on a raw connection checked out from this entry.

        Driver errors propagate unchanged; errors meaning the connection is gone
        mark this entry unhealthy first.
        """
        cursor = None
        try:
            cursor = raw.cursor()
            cursor.execute(translate_placeholders(sql, self.dialect.paramstyle), tuple(parameters))
            columns = tuple(column[0] for column in cursor.description) if cursor.description else ()
            rows = [tuple(row) for row in cursor.fetchall()] if columns else []
            rowcount = cursor.rowcount if cursor.rowcount is not None else -1
            lastrowid = cursor.lastrowid or None
        except Exception as error:
            if self.dialect.is_disconnect(error):
                logger.warning("Connection to %r lost: %s", self, error)
                self.is_healthy = False
            raise
        finally:
            if cursor is not None:
                cursor.close()
        insert_ids = ()
        if lastrowid and not columns:
            insert_ids = tuple(self.dialect.insert_ids(lastrowid, rowcount))
        return ExecutionResult(
            columns=columns,
            rows=rows,
            rowcount=rowcount,
            lastrowid=lastrowid,
            insert_ids=insert_ids,
        )

    def execute(self, sql: str, parameters: Sequence[Any] = ()) -> ExecutionResult:
        raw = self.checkout()
        try:
            return self.run(raw, sql, parameters)
        finally:
            self.checkin(raw)

    def ping(self) -> None:
        """Run ``SELECT 1``; the driver's error propagates when the database is unreachable."""
        self.execute("SELECT 1")
        self.last_check = time.time()
        self.is_healthy = True

    def close(self) -> None:
        """Close every idle raw connection."""
        with self._lock:
            idle, self._idle = self._idle, []
        for raw in idle:
            self._close(raw)


class Router:
    """Sends writes to the primaries and reads to the replicas, round-robin.

    With no replica configured, reads go to the primaries too. Failures are
    not retried on another member.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.write_pool = [PooledConnection(url) for url in config.primaries]
        self.read_pool = [PooledConnection(url) for url in config.replicas]
        self._indices = {"write": 0, "read": 0}
        self._lock = threading.Lock()
        self.ping()

    @property
    def dialect(self) -> Dialect:
        return self.write_pool[0].dialect

    def _next(self, pool_name: str) -> PooledConnection:
        pool = self.write_pool if pool_name == "write" else self.read_pool
        with self._lock:
            index = self._indices[pool_name] % len(pool)
            self._indices[pool_name] = (index + 1) % len(pool)
        return pool[index]

    def select(self, sql: str) -> PooledConnection:
        """Pool entry the statement will run on."""
        if is_write_statement(sql) or not self.read_pool:
            return self._next("write")
        return self._next("read")

    def primary(self) -> PooledConnection:
        """Next write pool entry (used by transactions)."""
        return self._next("write")

    def execute(self, sql: str, parameters: Sequence[Any] = ()) -> ExecutionResult:
        entry = self.select(sql)
        logger.debug("%r: %s %r", entry, sql, tuple(parameters))
        return entry.execute(sql, parameters)

    @contextmanager
    def connection(self, write: bool = True):
        """Lend a raw driver connection, e.g. to a schema migration tool."""
        entry = self._next("write") if write or not self.read_pool else self._next("read")
        raw = entry.checkout()
        try:
            yield raw
        finally:
            entry.checkin(raw)

    def ping(self) -> None:
        for entry in self.write_pool + self.read_pool:
            entry.ping()

    def close(self) -> None:
        for entry in self.write_pool + self.read_pool:
            entry.close()

    def reconnect(self) -> None:
        self.close()
        self.ping()


_configs: dict[str, DatabaseConfig] = {}
_routers: dict[str, Router] = {}
_registry_lock = threading.Lock()


def connect(*primaries: DatabaseURL, replicas: Sequence[DatabaseURL] = (), name: str = "default", **options: Any) -> None:
    """Register a database under ``name``; connections open on first use.

    Args:
        *primaries: URLs (or callables returning URLs) of the write databases.
        replicas: URLs of the read databases.
        name: Registry name, used by ``database(name)``.
        **options: Other DatabaseConfig settings (page_limit, lock_method, trace).
    """
    config = DatabaseConfig(primaries=list(primaries), replicas=list(replicas), **options)
    with _registry_lock:
        _configs[name] = config
        previous = _routers.pop(name, None)
    if previous is not None:
        previous.close()


def _get_router(name: str = "default") -> Router:
    with _registry_lock:
        if name in _routers:
            return _routers[name]
        try:
            config = _configs[name]
        except KeyError as error:
            raise ValueError(f"No connection configured with name=`{name}`") from error
        router = _routers[name] = Router(config)
        return router


def _builder_for(router: Optional[Router], config: Optional[DatabaseConfig] = None):
    from .builder import Builder
    if router is None:
        return Builder()
    config = config or router.config
    return Builder(executor=router, page_limit=config.page_limit, lock_method=config.lock_method, tracing=config.trace)


def database(name: str = "default"):
    """Return a new builder on the database registered under ``name``."""
    return _builder_for(_get_router(name))


def new(*primaries: DatabaseURL, replicas: Sequence[DatabaseURL] = (), **options: Any):
    """Return a builder on a new router, or a render-only builder when no URL is given."""
    if not primaries and not replicas:
        return _builder_for(None)
    return _builder_for(Router(DatabaseConfig(primaries=list(primaries), replicas=list(replicas), **options)))


def disconnect(name: str = "default") -> None:
    """Close the connections of a registered database; it reconnects on next use."""
    with _registry_lock:
        router = _routers.pop(name, None)
    if router is not None:
        router.close()
