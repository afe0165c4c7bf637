import pytest

from faqdesk.faq.config import FAQServiceConfig, FAQStreamConfig, coerce_threshold
from faqdesk.faq.constants import (
    DEFAULT_FALLBACK_ANSWER,
    DEFAULT_FAQ_SIMILARITY_THRESHOLD,
    MAX_FAQ_SIMILARITY_THRESHOLD,
    MIN_FAQ_SIMILARITY_THRESHOLD,
)

_ENV_KEYS = (
    "FAQ_MATCH_THRESHOLD",
    "FAQ_FALLBACK_ANSWER",
    "FAQ_STORE_TIMEOUT_SECONDS",
    "FAQ_RELATED_LIMIT",
    "FAQ_RELATED_MIN_SIMILARITY",
    "FAQ_REDIS_URL",
    "REDIS_URL",
    "FAQ_STREAM_ENABLED",
    "FAQ_STREAM_CONSUMER",
    "FAQ_STREAM_BLOCK_MS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, DEFAULT_FAQ_SIMILARITY_THRESHOLD),
        ("0.7", 0.7),
        ("nope", DEFAULT_FAQ_SIMILARITY_THRESHOLD),
        (float("nan"), DEFAULT_FAQ_SIMILARITY_THRESHOLD),
        (0.0, MIN_FAQ_SIMILARITY_THRESHOLD),
        (3, MAX_FAQ_SIMILARITY_THRESHOLD),
    ],
)
def test_coerce_threshold(value, expected):
    assert coerce_threshold(value) == pytest.approx(expected)


def test_service_config_defaults():
    config = FAQServiceConfig.from_env()

    assert config.threshold == pytest.approx(0.6)
    assert config.fallback_answer == DEFAULT_FALLBACK_ANSWER
    assert config.store_timeout == pytest.approx(5.0)
    assert config.related_limit == 3


def test_service_config_reads_environment(monkeypatch):
    monkeypatch.setenv("FAQ_MATCH_THRESHOLD", "0.8")
    monkeypatch.setenv("FAQ_FALLBACK_ANSWER", "Fale com um atendente.")
    monkeypatch.setenv("FAQ_STORE_TIMEOUT_SECONDS", "abc")
    monkeypatch.setenv("FAQ_RELATED_LIMIT", "-2")

    config = FAQServiceConfig.from_env()

    assert config.threshold == pytest.approx(0.8)
    assert config.fallback_answer == "Fale com um atendente."
    assert config.store_timeout == pytest.approx(5.0)
    assert config.related_limit == 0


def test_stream_disabled_without_redis_url():
    config = FAQStreamConfig.from_env()

    assert config.enabled is False
    assert config.stream == "faq:commands"
    assert config.response_stream == "faq:responses"


def test_stream_enabled_with_redis_url(monkeypatch):
    monkeypatch.setenv("FAQ_REDIS_URL", " redis://cache:6379/2 ")
    monkeypatch.setenv("FAQ_STREAM_CONSUMER", "worker-1")
    monkeypatch.setenv("FAQ_STREAM_BLOCK_MS", "0")

    config = FAQStreamConfig.from_env()

    assert config.enabled is True
    assert config.redis_url == "redis://cache:6379/2"
    assert config.consumer_name == "worker-1"
    assert config.block_ms == 10000


def test_stream_can_be_switched_off(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://localhost/0")
    monkeypatch.setenv("FAQ_STREAM_ENABLED", "off")

    assert FAQStreamConfig.from_env().enabled is False


@pytest.mark.parametrize("flag", ["yes", "ON", "1"])
def test_stream_flag_cannot_enable_without_redis_url(monkeypatch, flag):
    monkeypatch.setenv("FAQ_STREAM_ENABLED", flag)

    assert FAQStreamConfig.from_env().enabled is False


def test_stream_flag_accepts_truthy_words(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://localhost/0")
    monkeypatch.setenv("FAQ_STREAM_ENABLED", " Yes ")

    assert FAQStreamConfig.from_env().enabled is True
