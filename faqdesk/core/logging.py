from __future__ import annotations

import logging
import warnings

NOISY_LIBRARIES = (
    "aiomysql",
    "redis",
    "asyncio",
)


def configure_logging(level_name: str) -> logging.Logger:
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s %(message)s",
    )
    for lib in NOISY_LIBRARIES:
        logging.getLogger(lib).setLevel(max(level, logging.WARNING))

    warnings.filterwarnings(
        "ignore",
        message=r".*(database|Table).*already exists.*",
        category=Warning,
    )

    return logging.getLogger(__name__)
