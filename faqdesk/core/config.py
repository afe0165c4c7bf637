from __future__ import annotations

import logging
import os
import socket
import uuid
from dataclasses import dataclass

from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_int(
    raw: str | None,
    *,
    default: int,
    minimum: int | None = None,
    name: str = "value",
) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        _logger.warning("Invalid %s=%s; using %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        _logger.warning("%s=%s below minimum %s; clamping", name, value, minimum)
        return minimum
    return value


def parse_float(
    raw: str | None,
    *,
    default: float,
    minimum: float | None = None,
    maximum: float | None = None,
    name: str = "value",
) -> float:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        _logger.warning("Invalid %s=%s; using %s", name, raw, default)
        return default
    if value != value:  # NaN check
        _logger.warning("Invalid %s=%s; using %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        _logger.warning("%s=%s below minimum %s; clamping", name, value, minimum)
        return minimum
    if maximum is not None and value > maximum:
        _logger.warning("%s=%s above maximum %s; clamping", name, value, maximum)
        return maximum
    return value


def parse_bool(raw: str | None, *, default: bool) -> bool:
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in TRUE_VALUES


@dataclass(slots=True)
class RuntimeConfig:
    log_level: str
    instance_id: str
    mysql_pool_min: int
    mysql_pool_max: int


def load_runtime_config() -> RuntimeConfig:
    load_dotenv()

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    instance_id = (
        os.getenv("FAQDESK_INSTANCE_ID")
        or os.getenv("INSTANCE_ID")
        or f"{socket.gethostname()}-{os.getpid()}-{uuid.uuid4().hex[:8]}"
    )
    pool_min = parse_int(
        os.getenv("MYSQL_POOL_MIN"),
        default=1,
        minimum=1,
        name="MYSQL_POOL_MIN",
    )
    pool_max = parse_int(
        os.getenv("MYSQL_POOL_MAX"),
        default=10,
        minimum=pool_min,
        name="MYSQL_POOL_MAX",
    )

    return RuntimeConfig(
        log_level=log_level,
        instance_id=instance_id,
        mysql_pool_min=pool_min,
        mysql_pool_max=pool_max,
    )
