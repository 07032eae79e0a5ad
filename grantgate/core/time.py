"""
grantgate/core/time.py

THE ONLY CLOCK SOURCE IN GRANTGATE.

The engine never reads wall time directly. A Clock is injected into
GrantEngine and every timestamp (created_at, approved_at) comes from
clock.now(): whole seconds since the Unix epoch, as an unsigned 64-bit int.
"""

import time

from grantgate.core.models import U64_MAX


class Clock:
    """Source of ledger time in whole seconds."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall-clock seconds, truncated."""

    def now(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """
    Deterministic clock for tests and simulations.

    Starts at ``start`` and only moves when told to. Values are clamped
    to the u64 range so very long simulated pauses cannot leave it.
    """

    def __init__(self, start: int = 0) -> None:
        self._now = self._clamp(start)

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = self._clamp(timestamp)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"Clock cannot move backwards (seconds={seconds})")
        self._now = self._clamp(self._now + seconds)
        return self._now

    @staticmethod
    def _clamp(value: int) -> int:
        if value < 0:
            raise ValueError(f"Timestamp must be non-negative, got {value}")
        return min(value, U64_MAX)

    def __repr__(self) -> str:
        return f"ManualClock(now={self._now})"
