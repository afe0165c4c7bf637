from __future__ import annotations

from typing import Optional

from faqdesk.faq.config import FAQServiceConfig
from faqdesk.faq.constants import DEFAULT_TOP_QUESTIONS
from faqdesk.faq.locks import EntryLockPool
from faqdesk.faq.matcher import FAQMatcher
from faqdesk.faq.models import FAQEntrySummary, FAQStats, FeedbackRecord, MatchResult
from faqdesk.faq.ranker import FAQRanker
from faqdesk.faq.repository import FAQRepository, MySQLFAQRepository
from faqdesk.faq.tracker import UsageTracker


class FAQService:
    """Entry point used by chat front ends, the stream worker and operator scripts."""

    def __init__(
        self,
        repository: FAQRepository,
        config: Optional[FAQServiceConfig] = None,
        *,
        locks: Optional[EntryLockPool] = None,
    ) -> None:
        self.config = config or FAQServiceConfig()
        self.repository = repository
        self.tracker = UsageTracker(
            repository,
            locks=locks if locks is not None else EntryLockPool(),
            timeout=self.config.store_timeout,
        )
        self.matcher = FAQMatcher(repository, self.tracker, self.config)
        self.ranker = FAQRanker(repository, timeout=self.config.store_timeout)

    async def get_faq_response(self, raw_query: str, *, timeout: float | None = None) -> MatchResult:
        return await self.matcher.match(raw_query, timeout=timeout)

    async def register_feedback(
        self,
        entry_id: str,
        helpful: bool,
        comment: Optional[str] = None,
        *,
        timeout: float | None = None,
    ) -> FeedbackRecord:
        return await self.tracker.register_feedback(entry_id, helpful, comment, timeout=timeout)

    async def get_top_questions(
        self,
        n: int = DEFAULT_TOP_QUESTIONS,
        *,
        timeout: float | None = None,
    ) -> list[FAQEntrySummary]:
        return await self.ranker.top_questions(n, timeout=timeout)

    async def get_faq_stats(self, *, timeout: float | None = None) -> FAQStats:
        return await self.ranker.stats(timeout=timeout)


def build_faq_service(
    config: Optional[FAQServiceConfig] = None,
    repository: Optional[FAQRepository] = None,
) -> FAQService:
    """Wire a service from the environment, defaulting to the MySQL store."""

    return FAQService(
        repository or MySQLFAQRepository(),
        config or FAQServiceConfig.from_env(),
    )


__all__ = ["FAQService", "build_faq_service"]
