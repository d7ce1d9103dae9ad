"""
Lightweight psycopg pool stand-in for unit tests.

`FakePool` mimics the subset of `psycopg_pool.ConnectionPool` the
repositories use: `pool.connection()` as a context manager yielding a
connection whose `cursor()` is a context manager. Each `execute` is recorded
in `pool.executed` and consumes the next scripted result.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, List, Optional, Tuple


@dataclass
class Result:
    """Scripted outcome of one `execute` call."""

    row: Optional[Tuple] = None
    rows: List[Tuple] = field(default_factory=list)
    rowcount: int = 0


class _FakeCursor:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool
        self._result = Result()
        self.rowcount = -1

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql: str, params: tuple | list | None = None) -> None:
        self._pool.executed.append((" ".join(sql.split()), tuple(params or ())))
        if self._pool.error is not None:
            raise self._pool.error
        self._result = self._pool.results.popleft() if self._pool.results else Result()
        self.rowcount = self._result.rowcount

    def executemany(self, sql: str, seq) -> None:
        for params in seq:
            self.execute(sql, params)

    def fetchone(self):
        return self._result.row

    def fetchall(self):
        return list(self._result.rows)


class _FakeConnection:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def cursor(self):
        return _FakeCursor(self._pool)


class _ConnectionContext:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    def __enter__(self):
        self._pool.checkouts += 1
        return _FakeConnection(self._pool)

    def __exit__(self, *exc):
        return False


class FakePool:
    def __init__(self, *results: Result, error: Exception | None = None) -> None:
        self.results: Deque[Result] = deque(results)
        self.executed: list[tuple[str, tuple]] = []
        self.error = error
        self.checkouts = 0
        self.closed = False

    def connection(self):
        return _ConnectionContext(self)

    def close(self) -> None:
        self.closed = True
