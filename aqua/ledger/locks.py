"""Per-strategy exclusive locks.

Every write and safe read for a strategy identity runs under that identity's
lock, so no caller observes a strategy between two steps of another
caller's block. The lock is re-entrant: the thread holding it (for example a
settlement running its taker callback) may keep touching the same strategy.
Different identities use different locks and never contend.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


@dataclass
class _Slot:
    lock: threading.RLock = field(default_factory=threading.RLock)
    # Threads holding or waiting on the lock, re-entries included
    users: int = 0


class StrategyLocks:
    """Lock table keyed by strategy identity.

    A slot lives only while some thread holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._slots: dict[str, _Slot] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)

    def is_held(self, strategy_hash: str) -> bool:
        with self._guard:
            return strategy_hash in self._slots

    @contextmanager
    def hold(self, strategy_hash: str) -> Iterator[None]:
        """Hold the strategy's lock for the duration of the block."""
        with self._guard:
            slot = self._slots.get(strategy_hash)
            if slot is None:
                slot = self._slots[strategy_hash] = _Slot()
            slot.users += 1

        slot.lock.acquire()
        try:
            yield
        finally:
            slot.lock.release()
            with self._guard:
                slot.users -= 1
                if slot.users == 0:
                    del self._slots[strategy_hash]
