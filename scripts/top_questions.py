#!/usr/bin/env python3
"""Print the most asked FAQ entries straight from the MySQL store."""

from __future__ import annotations

import argparse
import asyncio
import logging

from faqdesk.faq import FAQServiceConfig, build_faq_service
from faqdesk.faq.constants import DEFAULT_TOP_QUESTIONS
from faqdesk.utils import mysql


async def _run(limit: int, timeout: float | None, verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.INFO)

    await mysql.initialise_and_get_pool()
    try:
        service = build_faq_service(FAQServiceConfig.from_env())
        summaries = await service.get_top_questions(limit, timeout=timeout)
        stats = await service.get_faq_stats(timeout=timeout)
    finally:
        await mysql.close_pool()

    for position, summary in enumerate(summaries, start=1):
        print(
            f"{position:>3}. [{summary.entry_id}] {summary.question} "
            f"(used {summary.usage_count}x, helpful {summary.helpful_count}/{summary.feedback_count})"
        )
    print(
        f"\n{stats.total_entries} entries, {stats.total_usage} answers served, "
        f"{stats.helpful_ratio:.0%} helpful, {stats.unused_entries} never used"
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Show the FAQ entries ranked by usage and helpfulness.",
    )
    parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=DEFAULT_TOP_QUESTIONS,
        help="Number of entries to print.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the store before giving up.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emits INFO logs while querying.",
    )
    args = parser.parse_args()
    asyncio.run(_run(args.limit, args.timeout, args.verbose))


if __name__ == "__main__":
    main()
