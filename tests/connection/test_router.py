"""Tests for chainsql.connection: statement routing, round-robin and connection health."""

import sqlite3
import threading
from collections import Counter

import pytest

from chainsql.config import DatabaseConfig
from chainsql.connection import PooledConnection, Router, is_write_statement
from tests.helpers import sqlite_url


def _prepare(url: str, name: str) -> str:
    """Create a Source table holding the database's name."""
    path = url[len("sqlite:///"):]
    connection = sqlite3.connect(path)
    connection.execute("CREATE TABLE Source (Name TEXT)")
    connection.execute("INSERT INTO Source (Name) VALUES (?)", (name,))
    connection.commit()
    connection.close()
    return url


@pytest.fixture
def urls(request):
    primary = _prepare(sqlite_url(request, "-primary"), "primary")
    replicas = [_prepare(sqlite_url(request, f"-replica-{index}"), f"replica-{index}") for index in range(3)]
    return primary, replicas


def _source(router: Router) -> str:
    return router.execute("SELECT Name FROM Source").rows[0][0]


@pytest.mark.parametrize("sql,expected", [
    ("SELECT * FROM Users", False),
    ("  select 1", False),
    ("SHOW TABLES", False),
    ("INSERT INTO Users (A) VALUES (?)", True),
    ("insert into Users (A) values (?)", True),
    ("\n  UPDATE Users SET A = ?", True),
    ("DELETE FROM Users", True),
    ("REPLACE INTO Users (A) VALUES (?)", True),
    ("CREATE TABLE Users (A TEXT)", True),
    ("DROP TABLE Users", True),
    ("LOCK TABLES Users WRITE", True),
    ("UNLOCK TABLES", True),
    ("", False),
])
def test_is_write_statement(sql, expected):
    assert is_write_statement(sql) is expected


class TestRoundRobin:

    def test_reads_rotate_over_replicas(self, urls):
        primary, replicas = urls
        router = Router(DatabaseConfig(primaries=[primary], replicas=replicas))
        assert [_source(router) for _ in range(4)] == ["replica-0", "replica-1", "replica-2", "replica-0"]
        router.close()

    def test_writes_go_to_primary(self, urls):
        primary, replicas = urls
        router = Router(DatabaseConfig(primaries=[primary], replicas=replicas))
        router.execute("INSERT INTO Source (Name) VALUES (?)", ("written",))
        path = primary[len("sqlite:///"):]
        connection = sqlite3.connect(path)
        names = [row[0] for row in connection.execute("SELECT Name FROM Source ORDER BY rowid")]
        connection.close()
        assert names == ["primary", "written"]
        router.close()

    def test_writes_rotate_over_primaries(self, request):
        primaries = [_prepare(sqlite_url(request, f"-primary-{index}"), f"primary-{index}") for index in range(3)]
        router = Router(DatabaseConfig(primaries=primaries))
        for index in range(4):
            router.execute("INSERT INTO Source (Name) VALUES (?)", (f"write-{index}",))
        router.close()
        written = []
        for url in primaries:
            connection = sqlite3.connect(url[len("sqlite:///"):])
            written.append([row[0] for row in connection.execute("SELECT Name FROM Source WHERE Name LIKE 'write-%' ORDER BY rowid")])
            connection.close()
        assert written == [["write-0", "write-3"], ["write-1"], ["write-2"]]

    def test_reads_use_primaries_without_replicas(self, urls):
        primary, _ = urls
        router = Router(DatabaseConfig(primaries=[primary]))
        assert [_source(router) for _ in range(2)] == ["primary", "primary"]
        router.close()

    def test_concurrent_dispatch_is_balanced(self, urls):
        primary, replicas = urls
        router = Router(DatabaseConfig(primaries=[primary], replicas=replicas))
        counts = Counter()
        counts_lock = threading.Lock()

        def dispatch():
            for _ in range(30):
                entry = router.select("SELECT 1")
                with counts_lock:
                    counts[entry.url] += 1

        threads = [threading.Thread(target=dispatch) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert sorted(counts.values()) == [80, 80, 80]
        assert set(counts) == set(replicas)
        router.close()


class TestHealth:

    def test_lost_connection_marks_entry_unhealthy_then_recovers(self, urls):
        primary, _ = urls
        router = Router(DatabaseConfig(primaries=[primary]))
        entry = router.write_pool[0]
        raw = entry.checkout()
        raw.close()
        entry.checkin(raw)
        with pytest.raises(sqlite3.ProgrammingError):
            router.execute("SELECT Name FROM Source")
        assert entry.is_healthy is False
        assert _source(router) == "primary"
        assert entry.is_healthy is True
        router.close()

    def test_ping_records_check_time(self, urls):
        primary, _ = urls
        entry = PooledConnection(primary)
        assert entry.last_check is None
        entry.ping()
        assert entry.last_check is not None
        assert entry.last_used is not None
        entry.close()

    def test_unreachable_database_fails_on_creation(self, tmp_path):
        url = f"sqlite:///{tmp_path}/missing/directory/db.sqlite3"
        with pytest.raises(sqlite3.OperationalError):
            Router(DatabaseConfig(primaries=[url]))

    def test_reconnect(self, urls):
        primary, _ = urls
        router = Router(DatabaseConfig(primaries=[primary]))
        router.reconnect()
        assert _source(router) == "primary"
        router.close()


def test_connection_lends_raw_connection(urls):
    primary, replicas = urls
    router = Router(DatabaseConfig(primaries=[primary], replicas=replicas))
    with router.connection() as raw:
        assert raw.execute("SELECT Name FROM Source").fetchone()[0] == "primary"
    with router.connection(write=False) as raw:
        assert raw.execute("SELECT Name FROM Source").fetchone()[0] == "replica-0"
    router.close()


def test_callable_url_is_resolved_on_connect(urls):
    primary, _ = urls
    calls = []

    def url_factory():
        calls.append(1)
        return primary

    router = Router(DatabaseConfig(primaries=[url_factory]))
    assert calls
    assert _source(router) == "primary"
    router.close()
