"""
Linear vesting math.

compute_claimable_balance() is pure: no clock, no store, no logging.
"""

from typing import Optional

from grantgate.core.models import U64_MAX, U128_MAX


def _checked_mul(a: int, b: int) -> Optional[int]:
    """u128 multiplication: None when the product does not fit."""
    product = a * b
    if product > U128_MAX:
        return None
    return product


def _require_range(name: str, value: int, upper: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0 or value > upper:
        raise ValueError(f"{name} out of range: {value}")


def compute_claimable_balance(total: int, start: int, now: int, duration: int) -> int:
    """
    Compute the claimable balance for a linear vesting grant.

    Args:
        total:    total amount granted (u128)
        start:    vesting start timestamp in seconds (u64)
        now:      current timestamp in seconds (u64)
        duration: vesting duration in seconds (u64)

    Returns:
        Amount claimable at ``now``, always within 0..total.

    Semantics:
        duration == 0      -> cliff: total once now >= start, else 0
        now <= start       -> 0
        now >= start+dur   -> total (saturates, never exceeds total)
        otherwise          -> floor(total * elapsed / duration)

    The proportional case is split as
        (total // duration) * elapsed + (total % duration) * elapsed // duration
    so each intermediate stays within u128. If a product would not fit,
    the full ``total`` is returned instead of wrapping. With elapsed < duration
    neither product can actually exceed u128, so the fallback only guards the
    arithmetic contract.

    Raises:
        ValueError: when an input is not an int within its u128/u64 range.
    """
    _require_range("total", total, U128_MAX)
    _require_range("start", start, U64_MAX)
    _require_range("now", now, U64_MAX)
    _require_range("duration", duration, U64_MAX)

    if duration == 0:
        return total if now >= start else 0
    if now <= start:
        return 0

    elapsed = now - start
    if elapsed >= duration:
        return total

    whole, rem = divmod(total, duration)

    part1 = _checked_mul(whole, elapsed)
    if part1 is None:
        return total
    part2 = _checked_mul(rem, elapsed)
    if part2 is None:
        return total

    return part1 + part2 // duration
