"""Shared test helpers."""

import os

TEST_DIRECTORY = "/tmp/chainsql-tests"


def sqlite_url(request, suffix: str = "") -> str:
    """URL of a fresh SQLite file, named after the running test."""
    os.makedirs(TEST_DIRECTORY, exist_ok=True)
    path = f"{TEST_DIRECTORY}/test-{request.function.__module__}-{request.function.__name__}{suffix}.sqlite3"
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    return f"sqlite:///{path}"


class RecordingExecutor:
    """Executor stand-in keeping every statement it is given.

    Reads return no rows, except ``SELECT COUNT(*)`` which returns ``total``.
    """

    def __init__(self, total: int = 0):
        self.total = total
        self.statements: list[tuple[str, tuple]] = []

    def execute(self, sql, parameters=()):
        from chainsql.connection import ExecutionResult
        self.statements.append((sql, tuple(parameters)))
        if sql.startswith("SELECT COUNT(*)"):
            return ExecutionResult(columns=("COUNT(*)",), rows=[(self.total,)])
        if sql.startswith("SELECT"):
            return ExecutionResult(columns=("ID",), rows=[])
        return ExecutionResult(rowcount=0)
