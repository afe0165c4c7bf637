import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Sequence, TypeVar

import aiomysql

from .config import MYSQL_CONFIG, MYSQL_MAX_RETRIES, MYSQL_RETRY_BACKOFF_SECONDS

T = TypeVar("T")

_USE_FAKE_POOL = os.getenv("MYSQL_FAKE", "").lower() in {"1", "true", "yes"}
_LOGGER = logging.getLogger(__name__)

_RETRYABLE_MYSQL_ERROR_CODES: set[int] = {
    1205,  # Lock wait timeout exceeded
    1213,  # Deadlock found when trying to get lock
    2003,  # Can't connect to MySQL server
    2006,  # MySQL server has gone away
    2013,  # Lost connection during query
    2055,  # Lost connection at host
}
_RETRYABLE_MYSQL_EXCEPTIONS = (
    aiomysql.OperationalError,
    aiomysql.InterfaceError,
    ConnectionError,
    OSError,
)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS faq_entries (
        entry_id VARCHAR(64) NOT NULL PRIMARY KEY,
        question TEXT NOT NULL,
        answer TEXT NOT NULL,
        usage_count INT UNSIGNED NOT NULL DEFAULT 0,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
        INDEX idx_faq_usage (usage_count)
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
    """
    CREATE TABLE IF NOT EXISTS faq_feedback (
        entry_id VARCHAR(64) NOT NULL,
        seq INT UNSIGNED NOT NULL,
        helpful BOOLEAN NOT NULL,
        comment TEXT NULL,
        created_at DATETIME(6) NOT NULL,
        PRIMARY KEY (entry_id, seq),
        CONSTRAINT fk_faq_feedback_entry
            FOREIGN KEY (entry_id) REFERENCES faq_entries (entry_id)
            ON DELETE CASCADE
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
)


class _FakeCursor:
    """Cursor used with MYSQL_FAKE: accepts every statement and returns no rows."""

    rowcount = 0

    async def __aenter__(self) -> "_FakeCursor":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def execute(self, _query: str, _params: Sequence[Any] = ()) -> None:
        return None

    async def fetchone(self) -> None:
        return None

    async def fetchall(self) -> list[Any]:
        return []


class _FakeConnection:
    def cursor(self) -> _FakeCursor:
        return _FakeCursor()

    async def begin(self) -> None:
        return None

    async def commit(self) -> None:
        return None

    async def rollback(self) -> None:
        return None


class _FakePool:
    def __init__(self) -> None:
        self._closed = False

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[_FakeConnection]:
        yield _FakeConnection()

    def close(self) -> None:
        self._closed = True

    async def wait_closed(self) -> None:
        return None


_pool: Optional[Any] = None


async def init_pool(minsize: int = 1, maxsize: int = 10) -> Any:
    """Create the global pool once; MYSQL_FAKE swaps in a no-op pool for tests."""
    global _pool
    if _pool is not None:
        return _pool

    if _USE_FAKE_POOL:
        _pool = _FakePool()
        return _pool

    await _ensure_schema()
    _pool = await aiomysql.create_pool(minsize=minsize, maxsize=maxsize, **MYSQL_CONFIG)
    _LOGGER.info("MySQL pool ready (min=%s max=%s db=%s)", minsize, maxsize, MYSQL_CONFIG["db"])
    return _pool


async def close_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is not None:
        pool.close()
        await pool.wait_closed()


async def get_pool() -> Any:
    if _pool is None or getattr(_pool, "_closed", False):
        return await init_pool()
    return _pool


async def initialise_and_get_pool(minsize: int = 1, maxsize: int = 10) -> Any:
    """Convenience wrapper that callers can await during startup."""
    return await init_pool(minsize=minsize, maxsize=maxsize)


async def _ensure_schema() -> None:
    """Create the database and the FAQ tables when they are missing."""
    cfg = MYSQL_CONFIG.copy()
    database = cfg.pop("db")
    conn = await aiomysql.connect(**cfg)
    try:
        async with conn.cursor() as cur:
            await cur.execute(
                f"CREATE DATABASE IF NOT EXISTS `{database}` "
                "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
            await cur.execute(f"USE `{database}`")
            for statement in _SCHEMA:
                await cur.execute(statement)
        await conn.commit()
    finally:
        conn.close()


async def execute_query(
    query: str,
    params: tuple | list = (),
    *,
    commit: bool = True,
    fetch_one: bool = False,
    fetch_all: bool = False,
):
    """Run one statement, returning ``(rows, affected_rows)``."""
    normalized_params: Sequence[Any] = tuple(params or ())
    return await _with_retries(
        lambda: _execute_mysql(
            query,
            normalized_params,
            commit=commit,
            fetch_one=fetch_one,
            fetch_all=fetch_all,
        )
    )


async def run_in_transaction(work: Callable[[Any], Awaitable[T]]) -> T:
    """Run ``work(cursor)`` on a single connection and commit once.

    Any failure, cancellation included, rolls every statement back. Transient
    errors retry the whole unit.
    """
    return await _with_retries(lambda: _execute_transaction(work))


async def _with_retries(attempt_once: Callable[[], Awaitable[T]]) -> T:
    attempt = 0
    total_attempts = max(MYSQL_MAX_RETRIES, 0) + 1
    while True:
        try:
            return await attempt_once()
        except Exception as exc:
            if attempt >= MYSQL_MAX_RETRIES or not _is_retryable_mysql_error(exc):
                _LOGGER.warning(
                    "MySQL query failed after %s/%s attempts: %s",
                    attempt + 1,
                    total_attempts,
                    exc,
                )
                raise
            delay = _calculate_retry_delay(attempt)
            _LOGGER.warning(
                "MySQL query failed (attempt %s/%s); retrying in %.2fs",
                attempt + 1,
                total_attempts,
                delay,
            )
            if delay > 0:
                await asyncio.sleep(delay)
            attempt += 1


def _calculate_retry_delay(attempt: int) -> float:
    base_delay = max(MYSQL_RETRY_BACKOFF_SECONDS, 0.0)
    return base_delay * (2 ** attempt)


def _is_retryable_mysql_error(exc: BaseException) -> bool:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, _RETRYABLE_MYSQL_EXCEPTIONS):
            return True
        code = current.args[0] if current.args else None
        if isinstance(code, int) and code in _RETRYABLE_MYSQL_ERROR_CODES:
            return True
        current = current.__cause__ or current.__context__
    return False


async def _execute_mysql(
    query: str,
    params: Sequence[Any],
    *,
    commit: bool,
    fetch_one: bool,
    fetch_all: bool,
) -> tuple[Any, int]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        async with conn.cursor() as cur:
            try:
                await cur.execute(query, params)
                affected_rows = cur.rowcount
                result = None
                if fetch_one:
                    result = await cur.fetchone()
                elif fetch_all:
                    result = await cur.fetchall()
                if commit:
                    await conn.commit()
                return result, affected_rows
            except Exception:
                if commit:
                    await conn.rollback()
                raise


async def _execute_transaction(work: Callable[[Any], Awaitable[T]]) -> T:
    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.begin()
        try:
            async with conn.cursor() as cur:
                result = await work(cur)
            await conn.commit()
            return result
        except BaseException:
            try:
                await conn.rollback()
            except Exception as rollback_exc:
                _LOGGER.warning("MySQL rollback failed: %s", rollback_exc)
            raise
