"""Tests for chainsql.config: DatabaseConfig validation and URL resolution."""

import pytest
from pydantic import ValidationError

from chainsql.config import DatabaseConfig, resolve_url


def test_defaults():
    config = DatabaseConfig(primaries=["sqlite:///:memory:"])
    assert config.replicas == []
    assert config.page_limit == 20
    assert config.lock_method == "WRITE"
    assert config.trace is False


def test_primaries_are_required():
    with pytest.raises(ValidationError):
        DatabaseConfig(primaries=[])
    with pytest.raises(ValidationError):
        DatabaseConfig()


def test_page_limit_must_be_positive():
    with pytest.raises(ValidationError):
        DatabaseConfig(primaries=["sqlite:///:memory:"], page_limit=0)


def test_lock_method_is_checked():
    with pytest.raises(ValidationError):
        DatabaseConfig(primaries=["sqlite:///:memory:"], lock_method="EXCLUSIVE")
    assert DatabaseConfig(primaries=["sqlite:///:memory:"], lock_method="READ LOCAL").lock_method == "READ LOCAL"


def test_callable_urls():
    config = DatabaseConfig(primaries=[lambda: "sqlite:///a.sqlite3"], replicas=["sqlite:///b.sqlite3"])
    assert resolve_url(config.primaries[0]) == "sqlite:///a.sqlite3"
    assert resolve_url(config.replicas[0]) == "sqlite:///b.sqlite3"
