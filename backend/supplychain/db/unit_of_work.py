"""Explicit unit of work for multi-step operations.

Every operation that touches inventory runs inside ``uow.transaction()``:
re-read the rows, check the invariant, mutate, append to the transaction log
and flip the document status, then commit once. Any exception rolls the whole
unit back.

Row locks come from ``SELECT ... FOR UPDATE`` where the database supports it.
SQLite does not, so every lock is also taken on a process-wide mutex keyed by
the same tuple (e.g. ``("MANUFACTURER", material_id, owner_id)``). Keys are
always acquired in sorted order and held until the outermost transaction ends.
Services take every lock they need before their first write, so a thread
waiting on a mutex never holds the SQLite write lock.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterable, Iterator, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from supplychain.core.config import settings
from supplychain.core.errors import DuplicateReference, SupplyChainError

logger = logging.getLogger(__name__)


class LockTimeout(SupplyChainError):
    """A keyed lock could not be acquired in time. Safe to retry the whole operation."""

    code = "lock_timeout"
    status_code = 503


class KeyedLockRegistry:
    """One ``threading.Lock`` per key, alive while anyone holds or waits on it.

    Entries are reference counted and dropped once the last holder releases,
    so the registry only ever holds keys that are currently in use.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: Dict[Hashable, List] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def acquire(self, key: Hashable, timeout: float) -> bool:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._entries[key] = entry
            entry[1] += 1
        if entry[0].acquire(timeout=timeout):
            return True
        self._unref(key)
        return False

    def release(self, key: Hashable) -> None:
        with self._guard:
            entry = self._entries[key]
        entry[0].release()
        self._unref(key)

    def _unref(self, key: Hashable) -> None:
        with self._guard:
            entry = self._entries[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[key]


# Shared by every UnitOfWork in the process
lock_registry = KeyedLockRegistry()


class UnitOfWork:
    """Owns one Session and the locks taken on its behalf."""

    def __init__(
        self,
        session: Session,
        registry: Optional[KeyedLockRegistry] = None,
        lock_timeout: Optional[float] = None,
    ):
        self.session = session
        self._registry = registry if registry is not None else lock_registry
        self._lock_timeout = lock_timeout if lock_timeout is not None else settings.inventory_lock_timeout
        self._depth = 0
        self._held: List[Hashable] = []
        self._held_keys: Set[Hashable] = set()

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator["UnitOfWork"]:
        """Re-entrant transaction scope. Only the outermost level commits."""
        self._depth += 1
        outermost = self._depth == 1
        try:
            yield self
            if outermost:
                self.session.commit()
        except IntegrityError as e:
            if outermost:
                self.session.rollback()
            logger.warning(f"Integrity violation rolled back: {e.orig}")
            raise DuplicateReference("Record conflicts with an existing reference") from e
        except Exception:
            if outermost:
                self.session.rollback()
            raise
        finally:
            self._depth -= 1
            if outermost:
                self._release_all()

    def lock(self, keys: Iterable[Hashable]) -> None:
        """Acquire keyed mutexes (sorted, skipping ones already held)."""
        if not self.in_transaction:
            raise RuntimeError("lock() must be called inside uow.transaction()")

        for key in sorted(set(keys) - self._held_keys):
            if not self._registry.acquire(key, self._lock_timeout):
                raise LockTimeout(
                    "Timed out waiting for a concurrent operation; retry the request",
                    key=repr(key),
                )
            self._held.append(key)
            self._held_keys.add(key)

    def _release_all(self) -> None:
        while self._held:
            self._registry.release(self._held.pop())
        self._held_keys.clear()

    def close(self) -> None:
        self.session.close()


def inventory_key(owner_kind: str, material_id: int, owner_id: int) -> tuple:
    return (str(owner_kind), material_id, owner_id)


def document_key(kind: str, document_id) -> tuple:
    return ("DOC:" + kind, document_id, 0)
