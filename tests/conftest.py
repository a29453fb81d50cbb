import logging

import pytest

import chainsql
from chainsql.connection import connect, disconnect
from tests.helpers import sqlite_url


@pytest.fixture(scope="function")
def setup_db(request):
    """Setup a temporary file SQLite database, registered as "default", with a Users table."""
    url = sqlite_url(request)
    logging.getLogger("chainsql").debug("Test database: %s", url)
    connect(url)
    db = chainsql.database()
    db.raw_query(
        "CREATE TABLE Users ("
        " ID INTEGER PRIMARY KEY AUTOINCREMENT,"
        " Username TEXT NOT NULL,"
        " Password TEXT NOT NULL DEFAULT '',"
        " Age INTEGER)"
    )
    yield url
    disconnect()


@pytest.fixture
def db(setup_db):
    """Builder on the test database."""
    return chainsql.database()


@pytest.fixture
def render():
    """Render-only builder (no connection)."""
    return chainsql.new()
