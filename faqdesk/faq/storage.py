from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from faqdesk.faq.models import FAQEntry, FeedbackRecord
from faqdesk.utils import mysql


def _coerce_count(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def _coerce_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str) and value:
        try:
            return _coerce_timestamp(datetime.fromisoformat(value))
        except ValueError:
            pass
    return datetime.now(timezone.utc)


def _row_to_feedback(row: Iterable) -> FeedbackRecord:
    values = tuple(row)
    comment = values[2] if len(values) > 2 else None
    return FeedbackRecord(
        helpful=bool(values[1]),
        comment=str(comment) if comment else None,
        created_at=_coerce_timestamp(values[3] if len(values) > 3 else None),
    )


def _row_to_entry(row: Iterable, feedback: Optional[list[FeedbackRecord]] = None) -> FAQEntry:
    values = tuple(row)
    return FAQEntry(
        entry_id=str(values[0]),
        question=str(values[1] or ""),
        answer=str(values[2] or ""),
        usage_count=_coerce_count(values[3] if len(values) > 3 else 0),
        feedback=feedback or [],
    )


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


async def fetch_entries() -> list[FAQEntry]:
    rows, _ = await mysql.execute_query(
        """
        SELECT entry_id, question, answer, usage_count
        FROM faq_entries
        ORDER BY entry_id ASC
        """,
        fetch_all=True,
        commit=False,
    )
    if not rows:
        return []

    feedback_rows, _ = await mysql.execute_query(
        """
        SELECT entry_id, helpful, comment, created_at
        FROM faq_feedback
        ORDER BY entry_id ASC, seq ASC
        """,
        fetch_all=True,
        commit=False,
    )
    grouped: dict[str, list[FeedbackRecord]] = defaultdict(list)
    for row in feedback_rows or []:
        grouped[str(row[0])].append(_row_to_feedback(row))

    return [_row_to_entry(row, grouped.get(str(row[0]))) for row in rows]


async def fetch_entry(entry_id: str) -> Optional[FAQEntry]:
    row, _ = await mysql.execute_query(
        """
        SELECT entry_id, question, answer, usage_count
        FROM faq_entries
        WHERE entry_id = %s
        LIMIT 1
        """,
        (entry_id,),
        fetch_one=True,
        commit=False,
    )
    if not row:
        return None

    feedback_rows, _ = await mysql.execute_query(
        """
        SELECT entry_id, helpful, comment, created_at
        FROM faq_feedback
        WHERE entry_id = %s
        ORDER BY seq ASC
        """,
        (entry_id,),
        fetch_all=True,
        commit=False,
    )
    feedback = [_row_to_feedback(fb_row) for fb_row in feedback_rows or []]
    return _row_to_entry(row, feedback)


_UPSERT_ENTRY = """
    INSERT INTO faq_entries (entry_id, question, answer, usage_count)
    VALUES (%s, %s, %s, %s)
    ON DUPLICATE KEY UPDATE
        question = VALUES(question),
        answer = VALUES(answer),
        usage_count = VALUES(usage_count)
"""

_COUNT_FEEDBACK = "SELECT COUNT(*) FROM faq_feedback WHERE entry_id = %s"

# INSERT IGNORE keeps repeated saves of the same entry idempotent.
_INSERT_FEEDBACK = """
    INSERT IGNORE INTO faq_feedback (entry_id, seq, helpful, comment, created_at)
    VALUES (%s, %s, %s, %s, %s)
"""


async def save_entry(entry: FAQEntry) -> None:
    """Upsert the entry row and append the feedback rows not stored yet, atomically."""

    async def _write(cur) -> None:
        await cur.execute(
            _UPSERT_ENTRY,
            (entry.entry_id, entry.question, entry.answer, entry.usage_count),
        )
        await cur.execute(_COUNT_FEEDBACK, (entry.entry_id,))
        row = await cur.fetchone()
        stored = _coerce_count(row[0]) if row else 0
        for seq in range(stored, len(entry.feedback)):
            record = entry.feedback[seq]
            await cur.execute(
                _INSERT_FEEDBACK,
                (
                    entry.entry_id,
                    seq,
                    bool(record.helpful),
                    record.comment,
                    _to_naive_utc(record.created_at),
                ),
            )

    await mysql.run_in_transaction(_write)


__all__ = [
    "fetch_entries",
    "fetch_entry",
    "save_entry",
]
