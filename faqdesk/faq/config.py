from __future__ import annotations

import os
import socket
import uuid
from dataclasses import dataclass

from dotenv import load_dotenv

from faqdesk.core.config import parse_bool, parse_float, parse_int
from faqdesk.faq.constants import (
    DEFAULT_FALLBACK_ANSWER,
    DEFAULT_FAQ_SIMILARITY_THRESHOLD,
    DEFAULT_RELATED_LIMIT,
    DEFAULT_RELATED_MIN_SIMILARITY,
    DEFAULT_STORE_TIMEOUT_SECONDS,
    MAX_FAQ_SIMILARITY_THRESHOLD,
    MIN_FAQ_SIMILARITY_THRESHOLD,
)


def coerce_threshold(value: object) -> float:
    if value is None:
        return DEFAULT_FAQ_SIMILARITY_THRESHOLD
    try:
        numeric = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_FAQ_SIMILARITY_THRESHOLD
    if numeric != numeric:  # NaN check
        return DEFAULT_FAQ_SIMILARITY_THRESHOLD
    if numeric < MIN_FAQ_SIMILARITY_THRESHOLD:
        return MIN_FAQ_SIMILARITY_THRESHOLD
    if numeric > MAX_FAQ_SIMILARITY_THRESHOLD:
        return MAX_FAQ_SIMILARITY_THRESHOLD
    return numeric


@dataclass(slots=True)
class FAQServiceConfig:
    """Matching policy and store limits for the FAQ service."""

    threshold: float = DEFAULT_FAQ_SIMILARITY_THRESHOLD
    fallback_answer: str = DEFAULT_FALLBACK_ANSWER
    store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS
    related_limit: int = DEFAULT_RELATED_LIMIT
    related_min_similarity: float = DEFAULT_RELATED_MIN_SIMILARITY

    def __post_init__(self) -> None:
        self.threshold = coerce_threshold(self.threshold)

    @classmethod
    def from_env(cls) -> "FAQServiceConfig":
        load_dotenv()
        fallback = (os.getenv("FAQ_FALLBACK_ANSWER") or "").strip() or DEFAULT_FALLBACK_ANSWER
        return cls(
            threshold=coerce_threshold(os.getenv("FAQ_MATCH_THRESHOLD")),
            fallback_answer=fallback,
            store_timeout=parse_float(
                os.getenv("FAQ_STORE_TIMEOUT_SECONDS"),
                default=DEFAULT_STORE_TIMEOUT_SECONDS,
                minimum=0.1,
                name="FAQ_STORE_TIMEOUT_SECONDS",
            ),
            related_limit=parse_int(
                os.getenv("FAQ_RELATED_LIMIT"),
                default=DEFAULT_RELATED_LIMIT,
                minimum=0,
                name="FAQ_RELATED_LIMIT",
            ),
            related_min_similarity=parse_float(
                os.getenv("FAQ_RELATED_MIN_SIMILARITY"),
                default=DEFAULT_RELATED_MIN_SIMILARITY,
                minimum=0.0,
                maximum=1.0,
                name="FAQ_RELATED_MIN_SIMILARITY",
            ),
        )


@dataclass(slots=True)
class FAQStreamConfig:
    """Where the worker reads FAQ commands from and publishes its answers."""

    enabled: bool
    redis_url: str | None
    stream: str = "faq:commands"
    group: str = "faqdesk"
    consumer_name: str = "faqdesk"
    response_stream: str = "faq:responses"
    block_ms: int = 10_000
    fetch_count: int = 20
    max_concurrency: int = 4
    max_response_length: int = 1000

    @classmethod
    def from_env(cls) -> "FAQStreamConfig":
        load_dotenv()
        redis_url = _resolve_redis_url()
        command_stream = (
            os.getenv("FAQ_COMMAND_STREAM", "faq:commands").strip() or "faq:commands"
        )
        response_stream = (
            os.getenv("FAQ_RESPONSE_STREAM", "faq:responses").strip() or "faq:responses"
        )
        group = os.getenv("FAQ_STREAM_GROUP", "faqdesk").strip() or "faqdesk"

        consumer_name = os.getenv("FAQ_STREAM_CONSUMER")
        if not consumer_name:
            hostname = socket.gethostname() or "faqdesk"
            consumer_name = f"{hostname}:{os.getpid()}:{uuid.uuid4().hex[:6]}"

        block_ms = _coerce_positive_int(os.getenv("FAQ_STREAM_BLOCK_MS")) or 10000
        fetch_count = _coerce_positive_int(os.getenv("FAQ_STREAM_FETCH_COUNT")) or 20
        max_concurrency = _coerce_positive_int(os.getenv("FAQ_STREAM_CONCURRENCY")) or 4
        max_response_length = (
            _coerce_positive_int(os.getenv("FAQ_STREAM_RESPONSE_MAXLEN")) or 1000
        )

        enabled = redis_url is not None and parse_bool(
            os.getenv("FAQ_STREAM_ENABLED"), default=True
        )

        return cls(
            enabled=enabled,
            redis_url=redis_url,
            stream=command_stream,
            group=group,
            consumer_name=consumer_name,
            block_ms=block_ms,
            fetch_count=fetch_count,
            max_concurrency=max_concurrency,
            response_stream=response_stream,
            max_response_length=max_response_length,
        )


def _resolve_redis_url() -> str | None:
    raw = os.getenv("FAQ_REDIS_URL") or os.getenv("REDIS_URL")
    if not raw:
        return None
    cleaned = raw.strip()
    return cleaned or None


def _coerce_positive_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


__all__ = ["FAQServiceConfig", "FAQStreamConfig", "coerce_threshold"]
