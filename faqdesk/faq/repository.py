"""Persistence seam between the FAQ engine and whatever store owns the entries."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Iterable, Optional, Protocol, TypeVar

import aiomysql

from faqdesk.faq import storage
from faqdesk.faq.errors import FAQStoreError, FAQStoreUnavailableError
from faqdesk.faq.models import FAQEntry

log = logging.getLogger(__name__)

T = TypeVar("T")

_STORE_FAILURES = (
    asyncio.TimeoutError,
    FAQStoreError,
    ConnectionError,
    OSError,
)


class FAQRepository(Protocol):
    async def load_all_entries(self) -> list[FAQEntry]:
        ...

    async def find_entry(self, entry_id: str) -> Optional[FAQEntry]:
        ...

    async def save_entry(self, entry: FAQEntry) -> None:
        ...


async def call_store(
    awaitable: Awaitable[T],
    *,
    timeout: float | None,
    operation: str,
) -> T:
    """Await a repository call, mapping timeouts and store failures to a retryable error."""

    try:
        if timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        log.warning("FAQ store %s timed out after %.2fs", operation, timeout or 0.0)
        raise FAQStoreUnavailableError(operation, "timed out") from exc
    except _STORE_FAILURES as exc:
        log.warning("FAQ store %s failed: %s", operation, exc)
        raise FAQStoreUnavailableError(operation, str(exc) or exc.__class__.__name__) from exc


class InMemoryFAQRepository:
    """Process-local repository; hands out copies so callers never share state."""

    def __init__(self, entries: Iterable[FAQEntry] = ()) -> None:
        self._entries: dict[str, FAQEntry] = {}
        for entry in entries:
            self._entries[entry.entry_id] = entry.copy()

    async def load_all_entries(self) -> list[FAQEntry]:
        return [self._entries[key].copy() for key in sorted(self._entries)]

    async def find_entry(self, entry_id: str) -> Optional[FAQEntry]:
        entry = self._entries.get(entry_id)
        return entry.copy() if entry is not None else None

    async def save_entry(self, entry: FAQEntry) -> None:
        self._entries[entry.entry_id] = entry.copy()

    def __len__(self) -> int:
        return len(self._entries)


class MySQLFAQRepository:
    """Repository backed by the ``faq_entries``/``faq_feedback`` MySQL tables."""

    _BACKEND_ERRORS = (aiomysql.Error,)

    async def load_all_entries(self) -> list[FAQEntry]:
        try:
            return await storage.fetch_entries()
        except self._BACKEND_ERRORS as exc:
            raise FAQStoreError(f"Failed to load FAQ entries: {exc}") from exc

    async def find_entry(self, entry_id: str) -> Optional[FAQEntry]:
        try:
            return await storage.fetch_entry(entry_id)
        except self._BACKEND_ERRORS as exc:
            raise FAQStoreError(f"Failed to load FAQ entry {entry_id}: {exc}") from exc

    async def save_entry(self, entry: FAQEntry) -> None:
        try:
            await storage.save_entry(entry)
        except self._BACKEND_ERRORS as exc:
            raise FAQStoreError(f"Failed to persist FAQ entry {entry.entry_id}: {exc}") from exc


__all__ = [
    "FAQRepository",
    "InMemoryFAQRepository",
    "MySQLFAQRepository",
    "call_store",
]
