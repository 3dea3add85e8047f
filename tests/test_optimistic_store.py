"""Tests for the optimistic cache."""

import asyncio

import pytest

from bookflow.errors import BackendError, ConcurrentUpdateError, NotFoundError
from bookflow.schemas.booking_schema import BookingStatus
from bookflow.workflow.optimistic_store import (
    KeyedLocks,
    MutationInProgressError,
    OptimisticUpdateStore,
)
from tests.conftest import make_booking


@pytest.fixture
def store():
    s = OptimisticUpdateStore()
    s.load([make_booking(booking_id="b1"), make_booking(booking_id="b2")])
    return s


class TestApplyCommitRollback:
    def test_apply_is_visible_immediately(self, store):
        store.apply("b1", {"status": BookingStatus.REJECTED})
        assert store.get("b1").status == BookingStatus.REJECTED

    def test_rollback_restores_exact_snapshot(self, store):
        before = store.get("b1")
        pending = store.apply("b1", {"status": BookingStatus.REJECTED, "performer_eta_minutes": 5})
        store.rollback(pending)
        assert store.get("b1") == before

    def test_commit_stores_server_value(self, store):
        pending = store.apply("b1", {"status": BookingStatus.PENDING_VETTING})
        server = store.get("b1").model_copy(update={"version": 2})
        store.commit(pending, server)
        assert store.get("b1").version == 2
        assert not store.has_pending("b1")

    def test_second_apply_on_same_key_refused(self, store):
        store.apply("b1", {"status": BookingStatus.REJECTED})
        with pytest.raises(MutationInProgressError):
            store.apply("b1", {"status": BookingStatus.PENDING_VETTING})

    def test_cannot_settle_twice(self, store):
        pending = store.apply("b1", {"status": BookingStatus.REJECTED})
        store.rollback(pending)
        with pytest.raises(RuntimeError):
            store.commit(pending, store.get("b1"))

    def test_unknown_key(self, store):
        with pytest.raises(NotFoundError):
            store.apply("missing", {})

    def test_get_returns_copy(self, store):
        copy = store.get("b1")
        copy.services_requested.append("show-pearl")
        assert "show-pearl" not in store.get("b1").services_requested


class TestMutate:
    @pytest.mark.asyncio
    async def test_success_commits(self, store):
        async def backend():
            return store.get("b1").model_copy(update={"status": BookingStatus.REJECTED,
                                                      "version": 2})

        result = await store.mutate("b1", {"status": BookingStatus.REJECTED}, backend)
        assert result.version == 2
        assert store.get("b1").status == BookingStatus.REJECTED

    @pytest.mark.asyncio
    async def test_backend_error_rolls_back_and_propagates(self, store):
        before = store.get("b1")

        async def backend():
            raise ConcurrentUpdateError("b1", 1, 2)

        with pytest.raises(ConcurrentUpdateError):
            await store.mutate("b1", {"status": BookingStatus.REJECTED}, backend)
        assert store.get("b1") == before

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, store):
        async def backend():
            raise RuntimeError("socket closed")

        with pytest.raises(BackendError) as exc_info:
            await store.mutate("b1", {"status": BookingStatus.REJECTED}, backend)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert store.get("b1").status == BookingStatus.PENDING_PERFORMER_ACCEPTANCE

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self, store):
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return store.get("b1")

        async def fast():
            return store.get("b2").model_copy(update={"version": 9})

        slow_task = asyncio.ensure_future(
            store.mutate("b1", {"status": BookingStatus.REJECTED}, slow)
        )
        await asyncio.sleep(0)
        result = await asyncio.wait_for(
            store.mutate("b2", {"status": BookingStatus.REJECTED}, fast), timeout=1,
        )
        assert result.version == 9
        release.set()
        await slow_task

    @pytest.mark.asyncio
    async def test_insert_rekeys_on_commit(self, store):
        temp = make_booking(booking_id="temp-1")

        async def backend():
            return temp.model_copy(update={"id": "real-1"})

        await store.insert(temp, backend)
        assert "temp-1" not in store
        assert "real-1" in store

    @pytest.mark.asyncio
    async def test_failed_insert_removes_entry(self, store):
        temp = make_booking(booking_id="temp-2")

        async def backend():
            raise BackendError("down")

        with pytest.raises(BackendError):
            await store.insert(temp, backend)
        assert "temp-2" not in store
        assert len(store) == 2


class TestKeyedLocks:
    @pytest.mark.asyncio
    async def test_lock_dropped_once_released(self):
        locks = KeyedLocks()
        async with locks.hold("b1"):
            assert "b1" in locks
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_kept_while_awaited(self):
        locks = KeyedLocks()
        order = []

        async def worker(name, pause):
            async with locks.hold("b1"):
                order.append(name)
                await asyncio.sleep(pause)

        first = asyncio.ensure_future(worker("first", 0.02))
        await asyncio.sleep(0)
        second = asyncio.ensure_future(worker("second", 0))
        await asyncio.sleep(0.005)
        assert order == ["first"]
        assert "b1" in locks

        await asyncio.gather(first, second)
        assert order == ["first", "second"]
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_store_releases_locks_after_mutations(self, store):
        async def ok():
            return make_booking(booking_id="b1", status=BookingStatus.REJECTED)

        async def fail():
            raise ConcurrentUpdateError("b2", 1, 2)

        await store.mutate("b1", {"status": BookingStatus.REJECTED}, ok)
        with pytest.raises(ConcurrentUpdateError):
            await store.mutate("b2", {"status": BookingStatus.REJECTED}, fail)
        assert store.lock_count == 0
