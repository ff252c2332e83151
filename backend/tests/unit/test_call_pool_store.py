"""
Unit Tests for Call Pool Store
Population, ordering, eligibility and validated updates
"""
import pytest
from datetime import timedelta

from callcenter.domain.exceptions import PoolBusy, SourceUnavailable
from callcenter.domain.models.call_pool import CallOutcome, CallPoolStatus, PoolSourceType
from callcenter.domain.services.call_pool_store import CallPoolStore
from callcenter.infrastructure.orders.in_memory import InMemoryOrderSource

from conftest import FailingOrderSource, FakeClock, make_order


class TestPopulate:
    """Tests for CallPoolStore.populate"""

    @pytest.mark.asyncio
    async def test_populate_by_order_status(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)

        items = await store.populate(PoolSourceType.ORDER, "NEW")

        assert {i.order_id for i in items} == {"o1", "o2"}
        assert all(i.status == CallPoolStatus.WAITING for i in items)
        assert all(i.retry_count == 0 for i in items)
        assert all(i.added_at == clock.now for i in items)
        assert store.source_label == "ORDER-NEW"

    @pytest.mark.asyncio
    async def test_populate_by_shipping_status(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)

        items = await store.populate(PoolSourceType.CARGO, "SHIPPED")

        assert [i.order_id for i in items] == ["o4"]
        assert store.source_label == "CARGO-SHIPPED"

    @pytest.mark.asyncio
    async def test_populate_uses_default_priority(self, order_source, clock):
        store = CallPoolStore(order_source, default_priority=4, clock=clock)

        items = await store.populate(PoolSourceType.ORDER, "NEW")

        assert all(i.priority == 4 for i in items)

    @pytest.mark.asyncio
    async def test_populate_with_no_matches_empties_pool(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        await store.populate(PoolSourceType.ORDER, "NEW")

        items = await store.populate(PoolSourceType.ORDER, "NO_SUCH_STATUS")

        assert items == []
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_item_ids_are_unique_across_populations(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)

        first = await store.populate(PoolSourceType.ORDER, "NEW")
        second = await store.populate(PoolSourceType.ORDER, "NEW")

        assert not {i.id for i in first} & {i.id for i in second}

    @pytest.mark.asyncio
    async def test_repopulate_discards_retry_state(self, order_source, clock):
        """Re-population replaces the pool wholesale, retry history included"""
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[0].id, retry_count=2, next_retry_at=clock.now + timedelta(minutes=30))

        items = await store.populate(PoolSourceType.ORDER, "NEW")

        assert all(i.retry_count == 0 for i in items)
        assert all(i.next_retry_at is None for i in items)

    @pytest.mark.asyncio
    async def test_source_failure_leaves_pool_unchanged(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        before = await store.populate(PoolSourceType.ORDER, "NEW")
        store._source = FailingOrderSource()

        with pytest.raises(SourceUnavailable):
            await store.populate(PoolSourceType.ORDER, "TO_CALL")

        assert [i.id for i in store.list()] == [i.id for i in before]
        assert store.source_label == "ORDER-NEW"

    @pytest.mark.asyncio
    async def test_populate_refused_while_item_active(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.mark_active(items[0].id)

        with pytest.raises(PoolBusy) as exc_info:
            await store.populate(PoolSourceType.ORDER, "TO_CALL")

        assert exc_info.value.active_item_id == items[0].id
        assert len(store) == 2

        store.clear_active()
        assert len(await store.populate(PoolSourceType.ORDER, "TO_CALL")) == 1


class TestListAndSelection:
    """Tests for list() ordering and find_next_eligible()"""

    @pytest.mark.asyncio
    async def test_list_is_idempotent_snapshot(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        await store.populate(PoolSourceType.ORDER, "NEW")

        first = store.list()
        first[0].status = CallPoolStatus.COMPLETED
        second = store.list()

        assert [i.id for i in second] == [i.id for i in first]
        assert second[0].status == CallPoolStatus.WAITING

    @pytest.mark.asyncio
    async def test_full_ties_keep_insertion_order(self, clock):
        source = InMemoryOrderSource([make_order(f"o{n}") for n in range(1, 6)])
        store = CallPoolStore(source, clock=clock)

        items = await store.populate(PoolSourceType.ORDER, "NEW")

        assert [i.order_id for i in items] == ["o1", "o2", "o3", "o4", "o5"]

    @pytest.mark.asyncio
    async def test_retried_item_listed_first(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[1].id, priority=5)
        store.update_item(items[0].id, retry_count=1)

        ordered = store.list()

        assert [i.id for i in ordered] == [items[0].id, items[1].id]

    @pytest.mark.asyncio
    async def test_find_next_eligible_prefers_priority(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[1].id, priority=3)

        chosen = store.find_next_eligible(clock.now)

        assert chosen.id == items[1].id

    @pytest.mark.asyncio
    async def test_find_next_eligible_skips_future_retry(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[0].id, retry_count=1, next_retry_at=clock.now + timedelta(minutes=10))

        assert store.find_next_eligible(clock.now).id == items[1].id

        # Once the retry time has passed the retried item wins
        clock.advance(minutes=10)
        assert store.find_next_eligible(clock.now).id == items[0].id

    @pytest.mark.asyncio
    async def test_find_next_eligible_skips_non_waiting(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[0].id, status=CallPoolStatus.DIALING)
        store.update_item(items[1].id, status=CallPoolStatus.COMPLETED)

        assert store.find_next_eligible(clock.now) is None

    def test_find_next_eligible_on_empty_pool(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)

        assert store.find_next_eligible(clock.now) is None

    @pytest.mark.asyncio
    async def test_find_next_eligible_is_pure(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        await store.populate(PoolSourceType.ORDER, "NEW")

        first = store.find_next_eligible(clock.now)
        second = store.find_next_eligible(clock.now)

        assert first.id == second.id
        assert store.get(first.id).status == CallPoolStatus.WAITING


class TestUpdateItem:
    """Tests for CallPoolStore.update_item"""

    @pytest.mark.asyncio
    async def test_partial_update(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")

        updated = store.update_item(items[0].id, last_call_outcome=CallOutcome.BUSY)

        assert updated.last_call_outcome == CallOutcome.BUSY
        assert updated.status == CallPoolStatus.WAITING
        assert store.get(items[0].id).last_call_outcome == "BUSY"

    def test_unknown_id_is_noop(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)

        assert store.update_item("pool-missing", status=CallPoolStatus.COMPLETED) is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_retry_count_cannot_decrease(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[0].id, retry_count=2)

        with pytest.raises(ValueError):
            store.update_item(items[0].id, retry_count=1)

        assert store.get(items[0].id).retry_count == 2

    @pytest.mark.asyncio
    async def test_failed_requires_exhausted_retries(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")

        with pytest.raises(ValueError):
            store.update_item(items[0].id, status=CallPoolStatus.FAILED, retry_count=1)

        assert store.get(items[0].id).status == CallPoolStatus.WAITING

    @pytest.mark.asyncio
    async def test_failed_is_final(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[0].id, status=CallPoolStatus.FAILED, retry_count=3)

        with pytest.raises(ValueError):
            store.update_item(items[0].id, status=CallPoolStatus.WAITING)

    @pytest.mark.asyncio
    async def test_terminal_status_clears_retry_time(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[0].id, retry_count=1, next_retry_at=clock.now + timedelta(minutes=10))

        updated = store.update_item(items[0].id, status=CallPoolStatus.COMPLETED)

        assert updated.next_retry_at is None

    @pytest.mark.asyncio
    async def test_non_updatable_field_rejected(self, order_source, clock):
        store = CallPoolStore(order_source, clock=clock)
        items = await store.populate(PoolSourceType.ORDER, "NEW")

        with pytest.raises(ValueError):
            store.update_item(items[0].id, customer_phone="+900000000000")

    @pytest.mark.asyncio
    async def test_status_counts(self, order_source, clock):
        store = CallPoolStore(order_source, clock=FakeClock())
        items = await store.populate(PoolSourceType.ORDER, "NEW")
        store.update_item(items[0].id, status=CallPoolStatus.COMPLETED)

        counts = store.status_counts()

        assert counts["COMPLETED"] == 1
        assert counts["WAITING"] == 1
        assert counts["FAILED"] == 0
