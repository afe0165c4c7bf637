from __future__ import annotations

import logging
from typing import Optional, Sequence

from faqdesk.faq import similarity
from faqdesk.faq.config import FAQServiceConfig
from faqdesk.faq.constants import EXACT_MATCH_SCORE, MATCH_TYPE_EXACT, MATCH_TYPE_SIMILAR
from faqdesk.faq.errors import FAQEntryNotFoundError
from faqdesk.faq.models import FAQEntry, FAQMatch, FAQNoMatch, MatchResult
from faqdesk.faq.normalizer import normalize
from faqdesk.faq.repository import FAQRepository, call_store
from faqdesk.faq.tracker import UsageTracker

log = logging.getLogger(__name__)


def _preference_key(entry: FAQEntry) -> tuple[int, str]:
    # Among equal scores: most used first, then smallest identifier.
    return (-entry.usage_count, entry.entry_id)


def _pick_exact(entries: Sequence[FAQEntry], normalized_query: str) -> Optional[FAQEntry]:
    candidates = [entry for entry in entries if entry.normalized_question == normalized_query]
    if not candidates:
        return None
    return min(candidates, key=_preference_key)


def _pick_best(
    entries: Sequence[FAQEntry],
    normalized_query: str,
) -> tuple[Optional[FAQEntry], float]:
    best_entry: Optional[FAQEntry] = None
    best_score = 0.0
    for entry in entries:
        current = similarity.score(normalized_query, entry.normalized_question)
        if best_entry is None or current > best_score:
            best_entry, best_score = entry, current
        elif current == best_score and _preference_key(entry) < _preference_key(best_entry):
            best_entry = entry
    return best_entry, best_score


class FAQMatcher:
    """Resolve a raw question to a stored answer or the fallback answer."""

    def __init__(
        self,
        repository: FAQRepository,
        tracker: UsageTracker,
        config: Optional[FAQServiceConfig] = None,
    ) -> None:
        self._repository = repository
        self._tracker = tracker
        self._config = config or FAQServiceConfig()

    @property
    def threshold(self) -> float:
        return self._config.threshold

    def _no_match(self, *, invalid_input: bool = False) -> FAQNoMatch:
        return FAQNoMatch(
            fallback_answer=self._config.fallback_answer,
            invalid_input=invalid_input,
        )

    def _related_questions(
        self,
        entries: Sequence[FAQEntry],
        normalized_query: str,
        matched_id: str,
    ) -> tuple[str, ...]:
        limit = self._config.related_limit
        if limit <= 0:
            return ()
        scored = []
        for entry in entries:
            if entry.entry_id == matched_id:
                continue
            current = similarity.score(normalized_query, entry.normalized_question)
            if current > 0 and current >= self._config.related_min_similarity:
                scored.append((-current, entry.entry_id, entry.question))
        scored.sort()
        return tuple(question for _, _, question in scored[:limit])

    async def match(self, raw_query: str, *, timeout: float | None = None) -> MatchResult:
        normalized_query = normalize(raw_query)
        if not normalized_query:
            log.debug("Rejecting empty FAQ query %r", raw_query)
            return self._no_match(invalid_input=True)

        effective_timeout = self._config.store_timeout if timeout is None else timeout
        entries = await call_store(
            self._repository.load_all_entries(),
            timeout=effective_timeout,
            operation="load_all_entries",
        )

        match_type = MATCH_TYPE_EXACT
        best_score = EXACT_MATCH_SCORE
        best_entry = _pick_exact(entries, normalized_query)
        if best_entry is None:
            match_type = MATCH_TYPE_SIMILAR
            best_entry, best_score = _pick_best(entries, normalized_query)

        if best_entry is None or best_score <= 0.0 or best_score < self.threshold:
            log.debug(
                "No FAQ entry cleared threshold %.2f for %r (best=%.2f)",
                self.threshold,
                raw_query,
                best_score,
            )
            return self._no_match()

        try:
            await self._tracker.increment_usage(best_entry.entry_id, timeout=effective_timeout)
        except FAQEntryNotFoundError:
            log.warning(
                "FAQ entry %s vanished before its usage could be recorded; answering with fallback",
                best_entry.entry_id,
            )
            return self._no_match()

        log.info(
            "FAQ %s match for %r: entry=%s score=%.2f",
            match_type,
            raw_query,
            best_entry.entry_id,
            best_score,
        )
        return FAQMatch(
            entry_id=best_entry.entry_id,
            question=best_entry.question,
            answer=best_entry.answer,
            score=best_score,
            match_type=match_type,
            related_questions=self._related_questions(
                entries, normalized_query, best_entry.entry_id
            ),
        )


__all__ = ["FAQMatcher"]
