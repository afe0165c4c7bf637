from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Union

from faqdesk.faq.normalizer import normalize


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class FeedbackRecord:
    """A single helpful/not-helpful vote left on a served answer."""

    helpful: bool
    comment: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(slots=True)
class FAQEntry:
    """Stored question/answer pair with its usage and feedback history."""

    entry_id: str
    question: str
    answer: str
    usage_count: int = 0
    feedback: list[FeedbackRecord] = field(default_factory=list)
    _normalized: Optional[tuple[str, str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.usage_count < 0:
            raise ValueError("usage_count must not be negative")

    @property
    def normalized_question(self) -> str:
        cached = self._normalized
        if cached is None or cached[0] != self.question:
            cached = (self.question, normalize(self.question))
            self._normalized = cached
        return cached[1]

    @property
    def feedback_count(self) -> int:
        return len(self.feedback)

    @property
    def helpful_count(self) -> int:
        return sum(1 for record in self.feedback if record.helpful)

    @property
    def helpful_ratio(self) -> float:
        total = len(self.feedback)
        if total == 0:
            return 0.0
        return self.helpful_count / total

    def copy(self) -> "FAQEntry":
        return replace(self, feedback=list(self.feedback))

    def with_usage_increment(self) -> "FAQEntry":
        return replace(self, usage_count=self.usage_count + 1, feedback=list(self.feedback))

    def with_feedback(self, record: FeedbackRecord) -> "FAQEntry":
        return replace(self, feedback=[*self.feedback, record])


@dataclass(frozen=True, slots=True)
class FAQMatch:
    """An FAQ entry accepted for the query, exactly or by similarity."""

    entry_id: str
    question: str
    answer: str
    score: float
    match_type: str
    related_questions: tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class FAQNoMatch:
    """No entry cleared the threshold; ``invalid_input`` flags empty queries."""

    fallback_answer: str
    invalid_input: bool = False

    @property
    def matched(self) -> bool:
        return False


MatchResult = Union[FAQMatch, FAQNoMatch]


@dataclass(frozen=True, slots=True)
class FAQEntrySummary:
    entry_id: str
    question: str
    usage_count: int
    feedback_count: int
    helpful_count: int
    helpful_ratio: float

    @classmethod
    def from_entry(cls, entry: FAQEntry) -> "FAQEntrySummary":
        return cls(
            entry_id=entry.entry_id,
            question=entry.question,
            usage_count=entry.usage_count,
            feedback_count=entry.feedback_count,
            helpful_count=entry.helpful_count,
            helpful_ratio=entry.helpful_ratio,
        )


@dataclass(frozen=True, slots=True)
class FAQStats:
    """Aggregate usage and feedback figures over the whole FAQ bank."""

    total_entries: int
    total_usage: int
    total_feedback: int
    helpful_feedback: int
    unused_entries: int

    @property
    def helpful_ratio(self) -> float:
        if self.total_feedback == 0:
            return 0.0
        return self.helpful_feedback / self.total_feedback


__all__ = [
    "FeedbackRecord",
    "FAQEntry",
    "FAQMatch",
    "FAQNoMatch",
    "MatchResult",
    "FAQEntrySummary",
    "FAQStats",
]
