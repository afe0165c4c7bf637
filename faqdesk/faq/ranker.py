from __future__ import annotations

from typing import Iterable

from faqdesk.faq.models import FAQEntry, FAQEntrySummary, FAQStats
from faqdesk.faq.repository import FAQRepository, call_store


def _ranking_key(entry: FAQEntry) -> tuple[int, float, str]:
    return (-entry.usage_count, -entry.helpful_ratio, entry.entry_id)


def rank_entries(entries: Iterable[FAQEntry], limit: int) -> list[FAQEntrySummary]:
    if limit <= 0:
        return []
    ordered = sorted(entries, key=_ranking_key)
    return [FAQEntrySummary.from_entry(entry) for entry in ordered[:limit]]


def summarize_entries(entries: Iterable[FAQEntry]) -> FAQStats:
    total_entries = 0
    total_usage = 0
    total_feedback = 0
    helpful_feedback = 0
    unused_entries = 0
    for entry in entries:
        total_entries += 1
        total_usage += entry.usage_count
        total_feedback += entry.feedback_count
        helpful_feedback += entry.helpful_count
        if entry.usage_count == 0:
            unused_entries += 1
    return FAQStats(
        total_entries=total_entries,
        total_usage=total_usage,
        total_feedback=total_feedback,
        helpful_feedback=helpful_feedback,
        unused_entries=unused_entries,
    )


class FAQRanker:
    """Read-only views over tracker-maintained usage and feedback."""

    def __init__(self, repository: FAQRepository, *, timeout: float | None = None) -> None:
        self._repository = repository
        self._timeout = timeout

    async def _snapshot(self, timeout: float | None) -> list[FAQEntry]:
        return await call_store(
            self._repository.load_all_entries(),
            timeout=self._timeout if timeout is None else timeout,
            operation="load_all_entries",
        )

    async def top_questions(self, n: int, *, timeout: float | None = None) -> list[FAQEntrySummary]:
        """Most used entries first, then best helpful ratio, then entry id."""

        if n <= 0:
            return []
        return rank_entries(await self._snapshot(timeout), n)

    async def stats(self, *, timeout: float | None = None) -> FAQStats:
        return summarize_entries(await self._snapshot(timeout))


__all__ = ["FAQRanker", "rank_entries", "summarize_entries"]
