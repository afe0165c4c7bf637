import asyncio

import pytest

from faqdesk.faq.errors import FAQEntryNotFoundError, FAQStoreError, FAQStoreUnavailableError
from faqdesk.faq.locks import EntryLockPool
from faqdesk.faq.models import FAQEntry
from faqdesk.faq.repository import InMemoryFAQRepository
from faqdesk.faq.tracker import UsageTracker


def _repository():
    return InMemoryFAQRepository(
        [
            FAQEntry(entry_id="backup", question="Vocês fazem backup?", answer="Sim.", usage_count=4),
            FAQEntry(entry_id="mac", question="Trabalham com Mac?", answer="Sim."),
        ]
    )


@pytest.mark.anyio
async def test_increment_usage_adds_one():
    repository = _repository()
    tracker = UsageTracker(repository)

    updated = await tracker.increment_usage("backup")

    assert updated.usage_count == 5
    assert (await repository.find_entry("backup")).usage_count == 5


@pytest.mark.anyio
async def test_increment_unknown_entry_raises_not_found():
    tracker = UsageTracker(_repository())

    with pytest.raises(FAQEntryNotFoundError) as excinfo:
        await tracker.increment_usage("missing")

    assert excinfo.value.entry_id == "missing"


@pytest.mark.anyio
async def test_register_feedback_appends_records_in_order():
    repository = _repository()
    tracker = UsageTracker(repository)

    first = await tracker.register_feedback("mac", True, "  very clear  ")
    second = await tracker.register_feedback("mac", False, "   ")

    stored = await repository.find_entry("mac")
    assert stored.feedback == [first, second]
    assert first.comment == "very clear"
    assert second.comment is None
    assert stored.helpful_ratio == pytest.approx(0.5)
    assert stored.usage_count == 0


@pytest.mark.anyio
async def test_feedback_for_unknown_entry_changes_nothing():
    repository = _repository()
    before = await repository.load_all_entries()
    tracker = UsageTracker(repository)

    with pytest.raises(FAQEntryNotFoundError):
        await tracker.register_feedback("ghost", True)

    assert await repository.load_all_entries() == before


@pytest.mark.anyio
async def test_concurrent_writes_on_one_entry_are_serialized():
    class YieldingRepository(InMemoryFAQRepository):
        async def find_entry(self, entry_id):
            entry = await super().find_entry(entry_id)
            await asyncio.sleep(0)
            return entry

        async def save_entry(self, entry):
            await asyncio.sleep(0)
            await super().save_entry(entry)

    repository = YieldingRepository(
        [FAQEntry(entry_id="hot", question="Hot question", answer="Hot answer")]
    )
    tracker = UsageTracker(repository)

    await asyncio.gather(
        *(tracker.increment_usage("hot") for _ in range(30)),
        *(tracker.register_feedback("hot", index % 2 == 0) for index in range(10)),
    )

    stored = await repository.find_entry("hot")
    assert stored.usage_count == 30
    assert stored.feedback_count == 10
    assert stored.helpful_count == 5


@pytest.mark.anyio
async def test_save_failure_is_retryable_and_leaves_entry_intact():
    class BrokenRepository(InMemoryFAQRepository):
        async def save_entry(self, entry):
            raise FAQStoreError("connection reset")

    repository = BrokenRepository([FAQEntry(entry_id="x", question="q", answer="a", usage_count=2)])
    tracker = UsageTracker(repository)

    with pytest.raises(FAQStoreUnavailableError) as excinfo:
        await tracker.register_feedback("x", True)

    assert excinfo.value.retryable is True
    stored = await repository.find_entry("x")
    assert stored.feedback == []
    assert stored.usage_count == 2


@pytest.mark.anyio
async def test_lock_pool_shares_lock_while_in_use_and_then_forgets_it():
    pool = EntryLockPool()
    order: list[str] = []
    release = asyncio.Event()

    async def first():
        async with pool.hold("a"):
            order.append("first-in")
            await release.wait()
            order.append("first-out")

    async def second():
        async with pool.hold("a"):
            order.append("second-in")

    first_task = asyncio.create_task(first())
    await asyncio.sleep(0)
    second_task = asyncio.create_task(second())
    await asyncio.sleep(0)

    assert len(pool) == 1
    release.set()
    await asyncio.gather(first_task, second_task)

    assert order == ["first-in", "first-out", "second-in"]
    assert len(pool) == 0


@pytest.mark.anyio
async def test_unknown_entry_ids_do_not_accumulate_locks():
    locks = EntryLockPool()
    tracker = UsageTracker(_repository(), locks=locks)

    for index in range(50):
        with pytest.raises(FAQEntryNotFoundError):
            await tracker.register_feedback(f"ghost-{index}", True)
        with pytest.raises(FAQEntryNotFoundError):
            await tracker.increment_usage(f"ghost-{index}")

    assert len(locks) == 0


@pytest.mark.anyio
async def test_different_entries_do_not_block_each_other():
    pool = EntryLockPool()
    entered = asyncio.Event()

    async def hold_a():
        async with pool.hold("a"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def hold_b():
        async with pool.hold("b"):
            entered.set()

    await asyncio.gather(hold_a(), hold_b())
    assert entered.is_set()
