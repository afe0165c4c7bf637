from __future__ import annotations

import logging
from typing import Optional

from faqdesk.faq.errors import FAQEntryNotFoundError
from faqdesk.faq.locks import EntryLockPool
from faqdesk.faq.models import FAQEntry, FeedbackRecord
from faqdesk.faq.repository import FAQRepository, call_store

log = logging.getLogger(__name__)


class UsageTracker:
    """Serializes usage increments and feedback appends per FAQ entry.

    Each write re-reads the entry under its lock, applies the change to a copy
    and saves that copy. A failed save therefore leaves the stored entry as it
    was.
    """

    def __init__(
        self,
        repository: FAQRepository,
        *,
        locks: Optional[EntryLockPool] = None,
        timeout: float | None = None,
    ) -> None:
        self._repository = repository
        self._locks = locks if locks is not None else EntryLockPool()
        self._timeout = timeout

    def _resolve_timeout(self, timeout: float | None) -> float | None:
        return self._timeout if timeout is None else timeout

    async def _load(self, entry_id: str, timeout: float | None) -> FAQEntry:
        entry = await call_store(
            self._repository.find_entry(entry_id),
            timeout=timeout,
            operation="find_entry",
        )
        if entry is None:
            raise FAQEntryNotFoundError(entry_id)
        return entry

    async def increment_usage(self, entry_id: str, *, timeout: float | None = None) -> FAQEntry:
        effective_timeout = self._resolve_timeout(timeout)
        async with self._locks.hold(entry_id):
            entry = await self._load(entry_id, effective_timeout)
            updated = entry.with_usage_increment()
            await call_store(
                self._repository.save_entry(updated),
                timeout=effective_timeout,
                operation="save_entry",
            )
        log.debug("FAQ entry %s usage now %s", entry_id, updated.usage_count)
        return updated

    async def register_feedback(
        self,
        entry_id: str,
        helpful: bool,
        comment: Optional[str] = None,
        *,
        timeout: float | None = None,
    ) -> FeedbackRecord:
        effective_timeout = self._resolve_timeout(timeout)
        cleaned_comment = comment.strip() if comment else None
        record = FeedbackRecord(helpful=bool(helpful), comment=cleaned_comment or None)
        async with self._locks.hold(entry_id):
            entry = await self._load(entry_id, effective_timeout)
            await call_store(
                self._repository.save_entry(entry.with_feedback(record)),
                timeout=effective_timeout,
                operation="save_entry",
            )
        log.info(
            "Feedback registered for FAQ entry %s: %s",
            entry_id,
            "helpful" if record.helpful else "not helpful",
        )
        return record


__all__ = ["UsageTracker"]
