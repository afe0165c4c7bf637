import pytest

from faqdesk.faq import service as service_module
from faqdesk.faq.config import FAQServiceConfig
from faqdesk.faq.errors import FAQEntryNotFoundError
from faqdesk.faq.models import FAQEntry, FAQMatch
from faqdesk.faq.repository import InMemoryFAQRepository, MySQLFAQRepository
from faqdesk.faq.service import FAQService, build_faq_service


def _seeded_service():
    repository = InMemoryFAQRepository(
        [
            FAQEntry(entry_id="1", question="Quanto custa a formatação do computador?", answer="R$ 150."),
            FAQEntry(entry_id="2", question="Vocês fazem backup dos dados?", answer="Sim."),
            FAQEntry(entry_id="3", question="Trabalham com computadores Mac?", answer="Sim, Windows, macOS e Linux."),
        ]
    )
    return FAQService(repository, FAQServiceConfig()), repository


@pytest.mark.anyio
async def test_answer_feedback_and_ranking_flow():
    service, _ = _seeded_service()

    for _ in range(2):
        result = await service.get_faq_response("vocês fazem backup dos dados")
        assert isinstance(result, FAQMatch)
    await service.get_faq_response("Trabalham com computadores Mac?")

    await service.register_feedback("2", True)
    await service.register_feedback("3", False, "Queria saber sobre Linux")

    top = await service.get_top_questions(2)
    assert [summary.entry_id for summary in top] == ["2", "3"]
    assert top[0].usage_count == 2
    assert top[0].helpful_ratio == 1.0

    stats = await service.get_faq_stats()
    assert stats.total_entries == 3
    assert stats.total_usage == 3
    assert stats.total_feedback == 2
    assert stats.helpful_feedback == 1
    assert stats.unused_entries == 1


@pytest.mark.anyio
async def test_feedback_is_visible_to_the_next_ranking_call():
    service, _ = _seeded_service()

    await service.register_feedback("3", True)

    top = await service.get_top_questions(1)
    assert top[0].entry_id == "3"


@pytest.mark.anyio
async def test_feedback_for_unknown_entry_surfaces_not_found():
    service, repository = _seeded_service()
    before = await repository.load_all_entries()

    with pytest.raises(FAQEntryNotFoundError):
        await service.register_feedback("404", True)

    assert await repository.load_all_entries() == before


@pytest.mark.anyio
async def test_feedback_for_many_unknown_ids_leaves_no_locks_behind():
    service, _ = _seeded_service()

    for index in range(1000):
        with pytest.raises(FAQEntryNotFoundError):
            await service.register_feedback(f"ghost-{index}", True)

    assert len(service.tracker._locks) == 0


@pytest.mark.anyio
async def test_top_questions_zero_is_empty():
    service, _ = _seeded_service()

    assert await service.get_top_questions(0) == []


def test_build_faq_service_defaults_to_mysql(monkeypatch):
    monkeypatch.setenv("FAQ_MATCH_THRESHOLD", "0.75")

    service = build_faq_service()

    assert isinstance(service.repository, MySQLFAQRepository)
    assert service.config.threshold == pytest.approx(0.75)
    assert service.matcher.threshold == pytest.approx(0.75)


def test_build_faq_service_accepts_explicit_parts():
    repository = InMemoryFAQRepository()
    config = FAQServiceConfig(threshold=0.9)

    service = service_module.build_faq_service(config, repository)

    assert service.repository is repository
    assert service.config is config
