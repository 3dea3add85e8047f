"""
Transactional client-side cache with optimistic updates.

A mutation is applied to the cached entity immediately, then the backend
call runs. On success the entry is replaced by the server's copy (which
may carry server-computed fields such as a new version). On failure the
pre-mutation snapshot is put back and a retryable BackendError surfaces.

Each key has its own lock: mutations to different entities never wait on
each other, and a key never has more than one mutation in flight.

Usage:
    store = OptimisticUpdateStore[Booking]()
    store.load(bookings)
    await store.mutate(booking_id, {"status": "confirmed"}, backend_call)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Iterable, Optional, TypeVar

from pydantic import BaseModel

from bookflow.errors import BackendError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class MutationInProgressError(BackendError):
    """Raised by ``apply`` when the key already has an uncommitted mutation."""


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class KeyedLocks:
    """One asyncio.Lock per key, discarded once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _LockEntry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class PendingMutation(Generic[T]):
    """An applied but not yet acknowledged change to one cache entry."""
    key: str
    snapshot: Optional[T]
    tentative: T
    settled: bool = False


class OptimisticUpdateStore(Generic[T]):
    """Cache of pydantic entities keyed by id."""

    def __init__(self, key: Callable[[T], str] = lambda entity: entity.id) -> None:
        self._key = key
        self._entries: dict[str, T] = {}
        self._locks = KeyedLocks()
        self._pending: dict[str, PendingMutation[T]] = {}

    # --- Reads ---

    def load(self, entities: Iterable[T]) -> None:
        """Replace cache contents with authoritative values."""
        self._entries = {self._key(e): e.model_copy(deep=True) for e in entities}

    def get(self, key: str) -> Optional[T]:
        entity = self._entries.get(key)
        return entity.model_copy(deep=True) if entity is not None else None

    def values(self) -> list[T]:
        return [e.model_copy(deep=True) for e in self._entries.values()]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def has_pending(self, key: str) -> bool:
        return key in self._pending

    def put(self, entity: T) -> None:
        """Store an authoritative value directly, outside any mutation."""
        self._entries[self._key(entity)] = entity.model_copy(deep=True)

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    # --- Explicit lifecycle ---

    def apply(self, key: str, changes: dict[str, Any]) -> PendingMutation[T]:
        """Apply ``changes`` to the cached entity synchronously.

        Raises:
            NotFoundError: If the key is not cached.
            MutationInProgressError: If the key already has a pending mutation.
        """
        if key in self._pending:
            raise MutationInProgressError(f"{key} already has a mutation in flight.")
        current = self._entries.get(key)
        if current is None:
            raise NotFoundError("Cached entity", key)
        snapshot = current.model_copy(deep=True)
        tentative = current.model_copy(update=changes, deep=True)
        self._entries[key] = tentative
        pending = PendingMutation(key=key, snapshot=snapshot, tentative=tentative)
        self._pending[key] = pending
        return pending

    def apply_insert(self, entity: T) -> PendingMutation[T]:
        """Tentatively add a new entity under its (temporary) key."""
        key = self._key(entity)
        if key in self._pending:
            raise MutationInProgressError(f"{key} already has a mutation in flight.")
        snapshot = self._entries.get(key)
        self._entries[key] = entity.model_copy(deep=True)
        pending = PendingMutation(
            key=key,
            snapshot=snapshot.model_copy(deep=True) if snapshot is not None else None,
            tentative=entity,
        )
        self._pending[key] = pending
        return pending

    def commit(self, pending: PendingMutation[T], server_value: T) -> T:
        """Reconcile with the backend's copy, which may live under a new key."""
        self._settle(pending)
        self._entries.pop(pending.key, None)
        stored = server_value.model_copy(deep=True)
        self._entries[self._key(stored)] = stored
        return stored.model_copy(deep=True)

    def rollback(self, pending: PendingMutation[T]) -> None:
        """Restore the exact pre-mutation value (or remove a tentative insert)."""
        self._settle(pending)
        if pending.snapshot is None:
            self._entries.pop(pending.key, None)
        else:
            self._entries[pending.key] = pending.snapshot
        logger.warning("Reverted optimistic update for %s", pending.key)

    def _settle(self, pending: PendingMutation[T]) -> None:
        if pending.settled:
            raise RuntimeError(f"Mutation for {pending.key} already committed or rolled back.")
        pending.settled = True
        if self._pending.get(pending.key) is pending:
            del self._pending[pending.key]

    # --- Drivers ---

    async def mutate(
        self,
        key: str,
        changes: dict[str, Any],
        backend_call: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Apply, call the backend, then commit or roll back.

        Returns:
            The committed server value.

        Raises:
            BackendError: If the backend call fails. The cache has been
                restored before this is raised; the original exception is
                chained as ``__cause__`` unless it already is a BackendError.
        """
        async with self._locks.hold(key):
            pending = self.apply(key, changes)
            return await self._settle_with(pending, backend_call)

    async def insert(self, entity: T, backend_call: Callable[[], Awaitable[T]]) -> T:
        """Optimistically add ``entity`` and replace it with the server's copy."""
        key = self._key(entity)
        async with self._locks.hold(key):
            pending = self.apply_insert(entity)
            return await self._settle_with(pending, backend_call)

    async def _settle_with(
        self, pending: PendingMutation[T], backend_call: Callable[[], Awaitable[T]]
    ) -> T:
        try:
            server_value = await backend_call()
        except (BackendError, asyncio.CancelledError):
            self.rollback(pending)
            raise
        except Exception as exc:
            self.rollback(pending)
            raise BackendError(f"Backend rejected update to {pending.key}: {exc}") from exc
        return self.commit(pending, server_value)
