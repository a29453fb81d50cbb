"""Tests for chainsql.dialects.sqlite: connect, insert ids, disconnect detection."""

import sqlite3

import pytest

from chainsql.dialects import SqliteDialect


def test_sqlite_connect_creates_connection(tmp_path):
    d = SqliteDialect()
    url = f"sqlite:///{tmp_path / 'test.db'}"
    conn = d.connect(url)
    assert conn.execute("SELECT 1").fetchone() == (1,)
    assert conn.isolation_level is None
    assert conn.execute("PRAGMA foreign_keys").fetchone() == (1,)
    conn.close()


def test_sqlite_connect_in_memory():
    conn = SqliteDialect().connect("sqlite://")
    conn.execute("CREATE TABLE Foo (Bar TEXT)")
    conn.close()


def test_sqlite_paramstyle():
    assert SqliteDialect.paramstyle == "qmark"


@pytest.mark.parametrize("lastrowid,rowcount,expected", [
    (3, 3, [1, 2, 3]),
    (7, 1, [7]),
    (None, 1, []),
    (5, 0, []),
])
def test_sqlite_insert_ids(lastrowid, rowcount, expected):
    assert SqliteDialect().insert_ids(lastrowid, rowcount) == expected


def test_sqlite_is_disconnect():
    d = SqliteDialect()
    conn = sqlite3.connect(":memory:")
    conn.close()
    with pytest.raises(sqlite3.ProgrammingError) as info:
        conn.cursor()
    assert d.is_disconnect(info.value) is True
    assert d.is_disconnect(sqlite3.OperationalError("no such table: Foo")) is False
    assert d.is_disconnect(ValueError("closed")) is False
