"""FAQ matching, usage tracking and ranking."""

from .config import FAQServiceConfig, FAQStreamConfig
from .constants import DEFAULT_FAQ_SIMILARITY_THRESHOLD, DEFAULT_FALLBACK_ANSWER
from .errors import (
    FAQEntryNotFoundError,
    FAQServiceError,
    FAQStoreError,
    FAQStoreUnavailableError,
)
from .models import (
    FAQEntry,
    FAQEntrySummary,
    FAQMatch,
    FAQNoMatch,
    FAQStats,
    FeedbackRecord,
    MatchResult,
)
from .normalizer import normalize
from .repository import FAQRepository, InMemoryFAQRepository, MySQLFAQRepository
from .service import FAQService, build_faq_service
from .stream import FAQStreamProcessor

__all__ = [
    "FAQEntry",
    "FAQEntrySummary",
    "FAQMatch",
    "FAQNoMatch",
    "FAQStats",
    "FeedbackRecord",
    "MatchResult",
    "FAQServiceError",
    "FAQEntryNotFoundError",
    "FAQStoreError",
    "FAQStoreUnavailableError",
    "FAQRepository",
    "InMemoryFAQRepository",
    "MySQLFAQRepository",
    "FAQService",
    "build_faq_service",
    "FAQServiceConfig",
    "FAQStreamConfig",
    "FAQStreamProcessor",
    "DEFAULT_FAQ_SIMILARITY_THRESHOLD",
    "DEFAULT_FALLBACK_ANSWER",
    "normalize",
]
