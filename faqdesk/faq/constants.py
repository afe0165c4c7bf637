"""Tunables shared by the FAQ matcher, ranker and configuration loader."""

DEFAULT_FAQ_SIMILARITY_THRESHOLD = 0.6
MIN_FAQ_SIMILARITY_THRESHOLD = 0.05
MAX_FAQ_SIMILARITY_THRESHOLD = 1.0

EXACT_MATCH_SCORE = 1.0

DEFAULT_RELATED_LIMIT = 3
DEFAULT_RELATED_MIN_SIMILARITY = 0.4

DEFAULT_TOP_QUESTIONS = 10
DEFAULT_STORE_TIMEOUT_SECONDS = 5.0

DEFAULT_FALLBACK_ANSWER = (
    "Sorry, I couldn't find an answer to your question. "
    "Try rephrasing it or ask to talk to one of our agents."
)

MATCH_TYPE_EXACT = "exact"
MATCH_TYPE_SIMILAR = "similar"

STREAM_POLL_RETRY_INITIAL_SECONDS = 1.0
STREAM_POLL_RETRY_MAX_SECONDS = 30.0

__all__ = [
    "DEFAULT_FAQ_SIMILARITY_THRESHOLD",
    "MIN_FAQ_SIMILARITY_THRESHOLD",
    "MAX_FAQ_SIMILARITY_THRESHOLD",
    "EXACT_MATCH_SCORE",
    "DEFAULT_RELATED_LIMIT",
    "DEFAULT_RELATED_MIN_SIMILARITY",
    "DEFAULT_TOP_QUESTIONS",
    "DEFAULT_STORE_TIMEOUT_SECONDS",
    "DEFAULT_FALLBACK_ANSWER",
    "MATCH_TYPE_EXACT",
    "MATCH_TYPE_SIMILAR",
    "STREAM_POLL_RETRY_INITIAL_SECONDS",
    "STREAM_POLL_RETRY_MAX_SECONDS",
]
