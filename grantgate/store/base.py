"""
Transactional key-value store.

Keys are GrantKey / MilestoneKey. Values are plain dicts (Grant.to_dict(),
Milestone.to_dict()); records are copied on the way in and out so callers
can never mutate stored state without put().

TRANSACTION CONTRACT:
    - writes inside transaction() are staged, not committed
    - reads inside the transaction see staged writes (re-entrant calls
      observe already-updated state)
    - the outermost transaction commits every staged write at once on
      normal exit
    - an exception discards the writes staged since that transaction
      (nested transactions act as savepoints)
    - put() outside a transaction commits immediately
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Union

from grantgate.core.models import GrantKey, MilestoneKey

logger = logging.getLogger(__name__)

StoreKey = Union[GrantKey, MilestoneKey]


class KeyValueStore:
    """Base store: in-memory committed state plus a staging overlay."""

    def __init__(self) -> None:
        self._records: Dict[StoreKey, dict] = {}
        self._staged:  Optional[Dict[StoreKey, dict]] = None
        self._depth:   int = 0

    # ── Public API ────────────────────────────────────────────

    def get(self, key: StoreKey) -> Optional[dict]:
        if self._staged is not None and key in self._staged:
            return dict(self._staged[key])
        value = self._records.get(key)
        return dict(value) if value is not None else None

    def contains(self, key: StoreKey) -> bool:
        return self.get(key) is not None

    def put(self, key: StoreKey, value: dict) -> None:
        if not isinstance(key, (GrantKey, MilestoneKey)):
            raise TypeError(f"Unsupported store key: {key!r}")
        if self._staged is None:
            with self.transaction():
                self._staged[key] = dict(value)
            return
        self._staged[key] = dict(value)

    def grant_ids(self) -> List[str]:
        """All grant ids, committed or staged, sorted."""
        keys = set(self._records)
        if self._staged is not None:
            keys.update(self._staged)
        return sorted(k.grant_id for k in keys if isinstance(k, GrantKey))

    def milestone_ids(self, grant_id: str) -> List[str]:
        """All milestone ids of one grant, sorted."""
        keys = set(self._records)
        if self._staged is not None:
            keys.update(self._staged)
        return sorted(
            k.milestone_id for k in keys
            if isinstance(k, MilestoneKey) and k.grant_id == grant_id
        )

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator["KeyValueStore"]:
        """Stage writes for the duration of the block. See module docstring."""
        outermost = self._depth == 0
        if outermost:
            self._staged = {}
            savepoint = None
        else:
            savepoint = dict(self._staged)

        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if outermost:
                discarded = len(self._staged)
                self._staged = None
                logger.debug("Transaction rolled back (%d staged writes discarded)", discarded)
            else:
                self._staged = savepoint
            raise

        self._depth -= 1
        if outermost:
            writes, self._staged = self._staged, None
            if writes:
                self._commit(writes)

    # ── Internal ──────────────────────────────────────────────

    def _commit(self, writes: Dict[StoreKey, dict]) -> None:
        """Make staged writes durable. Subclasses persist before calling super()."""
        self._records.update(writes)


class InMemoryStore(KeyValueStore):
    """Volatile store. Committed state lives only in this process."""

    def __repr__(self) -> str:
        return f"InMemoryStore(records={len(self._records)})"
