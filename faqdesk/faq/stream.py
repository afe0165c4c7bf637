"""Redis stream worker that answers FAQ commands.

Commands are read from ``FAQStreamConfig.stream`` through a consumer group.
Every command gets exactly one reply on ``response_stream`` (an answer or a
typed error) and is then acknowledged and deleted from the command stream.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Callable, Mapping

from redis.asyncio import Redis
from redis.asyncio import from_url as redis_from_url
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from faqdesk.core.config import TRUE_VALUES
from faqdesk.faq.config import FAQStreamConfig
from faqdesk.faq.constants import (
    DEFAULT_TOP_QUESTIONS,
    STREAM_POLL_RETRY_INITIAL_SECONDS,
    STREAM_POLL_RETRY_MAX_SECONDS,
)
from faqdesk.faq.errors import (
    FAQEntryNotFoundError,
    FAQServiceError,
    FAQStoreUnavailableError,
)
from faqdesk.faq.models import FAQEntrySummary, FAQMatch
from faqdesk.faq.service import FAQService

_logger = logging.getLogger(__name__)

_FALSE_VALUES = {"0", "false", "no", "off"}


class FAQRequestError(FAQServiceError):
    """Raised when a stream command is missing fields or names an unknown action."""


class FAQStreamProcessor:
    """Answer FAQ commands read from a Redis stream consumer group.

    At most ``max_concurrency`` commands are answered at once. A failed poll
    is retried with exponential backoff; a failed command still gets an error
    reply and is acknowledged so it is never redelivered forever.
    """

    def __init__(
        self,
        service: FAQService,
        config: FAQStreamConfig,
        *,
        redis_factory: Callable[..., Redis] | None = None,
    ) -> None:
        self._service = service
        self._config = config
        self._redis_factory = redis_factory or redis_from_url
        self._redis: Redis | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()
        self._slots = asyncio.Semaphore(max(1, config.max_concurrency))
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> bool:
        if not self._config.enabled or not self._config.redis_url:
            _logger.info("FAQ command stream disabled; processor not started")
            return False
        if self.is_running:
            return True

        redis = self._redis_factory(self._config.redis_url, decode_responses=True)
        try:
            await self._ensure_group(redis)
        except (RedisConnectionError, OSError) as exc:
            await redis.aclose()
            _logger.error(
                "Unable to reach Redis at %s for FAQ stream %s: %s",
                self._config.redis_url,
                self._config.stream,
                exc,
            )
            return False
        except Exception:
            await redis.aclose()
            raise

        self._redis = redis
        self._stopped.clear()
        self._task = asyncio.create_task(self._poll(), name="faq-stream-poll")
        self._task.add_done_callback(lambda _: self._stopped.set())
        _logger.info(
            "Answering FAQ commands from '%s' as %s/%s",
            self._config.stream,
            self._config.group,
            self._config.consumer_name,
        )
        return True

    async def stop(self) -> None:
        self._stopped.set()
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

        redis, self._redis = self._redis, None
        if redis is not None:
            await redis.aclose()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    async def _ensure_group(self, redis: Redis) -> None:
        try:
            await redis.xgroup_create(
                self._config.stream,
                self._config.group,
                id="0",
                mkstream=True,
            )
        except ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise
            _logger.debug("Consumer group %s already exists", self._config.group)

    async def _poll(self) -> None:
        assert self._redis is not None
        redis = self._redis
        delay = STREAM_POLL_RETRY_INITIAL_SECONDS

        while not self._stopped.is_set():
            try:
                batches = await redis.xreadgroup(
                    self._config.group,
                    self._config.consumer_name,
                    {self._config.stream: ">"},
                    count=self._config.fetch_count,
                    block=self._config.block_ms,
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                _logger.warning(
                    "Polling FAQ stream %s failed; retrying in %.1fs (%s)",
                    self._config.stream,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, STREAM_POLL_RETRY_MAX_SECONDS)
                continue

            delay = STREAM_POLL_RETRY_INITIAL_SECONDS
            for _stream, messages in batches or ():
                for message_id, fields in messages:
                    await self._slots.acquire()
                    task = asyncio.create_task(self._process(message_id, fields))
                    self._inflight.add(task)
                    task.add_done_callback(self._inflight.discard)

    async def _process(self, message_id: str, fields: Mapping[str, Any]) -> None:
        try:
            response = await self.handle_command(fields, message_id=message_id)
            await self._publish(response)
            await self._acknowledge(message_id)
        finally:
            self._slots.release()

    async def _publish(self, response: dict[str, str]) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.xadd(
                self._config.response_stream,
                response,
                maxlen=self._config.max_response_length,
                approximate=True,
            )
        except Exception:
            _logger.exception("Failed to publish FAQ response payload=%s", response)

    async def _acknowledge(self, message_id: str) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.xack(self._config.stream, self._config.group, message_id)
            await self._redis.xdel(self._config.stream, message_id)
        except Exception:
            _logger.exception("Failed to acknowledge FAQ command %s", message_id)

    async def handle_command(
        self,
        fields: Mapping[str, Any],
        *,
        message_id: str = "",
    ) -> dict[str, str]:
        """Run one command and return the reply fields, errors included."""

        payload = {str(key): value for key, value in fields.items()}
        try:
            return await self._handle_payload(payload)
        except asyncio.CancelledError:
            raise
        except FAQServiceError as exc:
            _logger.warning(
                "FAQ stream command id=%s action=%s failed: %s",
                message_id,
                payload.get("action"),
                exc,
            )
            return _format_error_response(payload, exc)
        except Exception as exc:
            _logger.exception(
                "FAQ stream command failed for id=%s payload=%s",
                message_id,
                payload,
            )
            return _format_error_response(payload, exc)

    async def _handle_payload(self, payload: dict[str, Any]) -> dict[str, str]:
        action = (payload.get("action") or "").lower().strip()
        request_id = payload.get("request_id") or payload.get("requestId") or ""
        if not action:
            raise FAQRequestError("action is required")

        base = {"request_id": str(request_id), "status": "ok", "action": action}

        if action == "ask":
            query = payload.get("query") or payload.get("question") or ""
            result = await self._service.get_faq_response(str(query))
            if isinstance(result, FAQMatch):
                return {
                    **base,
                    "matched": "true",
                    "entry_id": result.entry_id,
                    "question": result.question,
                    "answer": result.answer,
                    "score": f"{result.score:.4f}",
                    "match_type": result.match_type,
                    "related_questions": json.dumps(
                        list(result.related_questions), ensure_ascii=False
                    ),
                }
            return {
                **base,
                "matched": "false",
                "answer": result.fallback_answer,
                "invalid_input": _bool_text(result.invalid_input),
            }

        if action == "feedback":
            entry_id = _coerce_str(payload.get("entry_id") or payload.get("entryId"))
            if entry_id is None:
                raise FAQRequestError("entry_id is required for feedback")
            helpful = _coerce_bool(payload.get("helpful"))
            if helpful is None:
                raise FAQRequestError("helpful must be true or false")
            comment = _coerce_str(payload.get("comment"))
            record = await self._service.register_feedback(entry_id, helpful, comment)
            return {
                **base,
                "entry_id": entry_id,
                "helpful": _bool_text(record.helpful),
                "created_at": record.created_at.isoformat(),
            }

        if action == "top":
            limit = _coerce_int(payload.get("limit"))
            summaries = await self._service.get_top_questions(
                DEFAULT_TOP_QUESTIONS if limit is None else limit
            )
            return {
                **base,
                "questions": json.dumps(
                    [_summary_to_dict(summary) for summary in summaries],
                    ensure_ascii=False,
                ),
            }

        if action == "stats":
            stats = await self._service.get_faq_stats()
            return {
                **base,
                "total_entries": str(stats.total_entries),
                "total_usage": str(stats.total_usage),
                "total_feedback": str(stats.total_feedback),
                "helpful_feedback": str(stats.helpful_feedback),
                "helpful_ratio": f"{stats.helpful_ratio:.4f}",
                "unused_entries": str(stats.unused_entries),
            }

        raise FAQRequestError(f"Unknown FAQ action '{action}'")



def _summary_to_dict(summary: FAQEntrySummary) -> dict[str, Any]:
    return {
        "entry_id": summary.entry_id,
        "question": summary.question,
        "usage_count": summary.usage_count,
        "feedback_count": summary.feedback_count,
        "helpful_ratio": round(summary.helpful_ratio, 4),
    }


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def _coerce_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _format_error_response(payload: dict[str, Any], exc: Exception) -> dict[str, str]:
    request_id = payload.get("request_id") or payload.get("requestId") or ""
    action = payload.get("action") or ""

    if isinstance(exc, FAQEntryNotFoundError):
        code = "not_found"
    elif isinstance(exc, FAQStoreUnavailableError):
        code = "store_unavailable"
    elif isinstance(exc, FAQRequestError):
        code = "invalid_request"
    else:
        code = "internal_error"

    return {
        "request_id": str(request_id),
        "status": "error",
        "action": str(action),
        "error": str(exc) or exc.__class__.__name__,
        "error_code": code,
        "retryable": _bool_text(getattr(exc, "retryable", False)),
    }


__all__ = ["FAQRequestError", "FAQStreamProcessor"]
