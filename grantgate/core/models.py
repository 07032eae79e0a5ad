"""
grantgate/core/models.py

GrantGate Data Model

Two record types, both persisted through the store under their own key
constructor:

    GrantKey(grant_id)                    -> Grant
    MilestoneKey(grant_id, milestone_id)  -> Milestone

═══════════════════════════════════════════════════════════════════
ACCOUNTING CONTRACT
═══════════════════════════════════════════════════════════════════
    0 <= released_amount <= total_amount       for every reachable state
    total_amount, Milestone.amount             fixed at creation, in 1..U128_MAX
    Milestone.approved                         False -> True exactly once
    Milestone.approved_at                      set iff approved

The sum of approved milestone amounts is mirrored in released_amount.
Milestones are an append-only record of why released_amount grew.
═══════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from grantgate.core.exceptions import InvalidAmount


# ─────────────────────────────────────────────────────────────
# Numeric bounds
# ─────────────────────────────────────────────────────────────

U64_MAX  = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


def validate_amount(amount: Any, field_name: str = "amount") -> int:
    """
    Return ``amount`` if it is an int in 1..U128_MAX, else raise InvalidAmount.

    bool is rejected even though it subclasses int.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(
            f"{field_name} must be an integer",
            {field_name: repr(amount)},
        )
    if amount <= 0 or amount > U128_MAX:
        raise InvalidAmount(
            f"{field_name} must be between 1 and U128_MAX",
            {field_name: amount},
        )
    return amount


# ─────────────────────────────────────────────────────────────
# Status
# ─────────────────────────────────────────────────────────────

class GrantStatus(Enum):
    PROPOSED  = "Proposed"
    ACTIVE    = "Active"
    PAUSED    = "Paused"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (GrantStatus.COMPLETED, GrantStatus.CANCELLED)


# ─────────────────────────────────────────────────────────────
# Store keys
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GrantKey:
    grant_id: str

    def to_list(self) -> list:
        return ["grant", self.grant_id]


@dataclass(frozen=True)
class MilestoneKey:
    grant_id:     str
    milestone_id: str

    def to_list(self) -> list:
        return ["milestone", self.grant_id, self.milestone_id]


def key_from_list(parts: list):
    """Inverse of GrantKey.to_list() / MilestoneKey.to_list()."""
    if len(parts) == 2 and parts[0] == "grant":
        return GrantKey(parts[1])
    if len(parts) == 3 and parts[0] == "milestone":
        return MilestoneKey(parts[1], parts[2])
    raise ValueError(f"Unknown store key: {parts!r}")


# ─────────────────────────────────────────────────────────────
# Records
# ─────────────────────────────────────────────────────────────

@dataclass
class Grant:
    """A funding commitment from ``admin`` to ``grantee``, capped at ``total_amount``."""

    admin:           str
    grantee:         str
    total_amount:    int
    released_amount: int
    token_address:   str
    created_at:      int
    status:          GrantStatus

    @property
    def remaining_amount(self) -> int:
        """Uncommitted headroom: total minus released, floored at zero."""
        return max(self.total_amount - self.released_amount, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin":           self.admin,
            "grantee":         self.grantee,
            "total_amount":    self.total_amount,
            "released_amount": self.released_amount,
            "token_address":   self.token_address,
            "created_at":      self.created_at,
            "status":          self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Grant":
        return cls(
            admin=           data["admin"],
            grantee=         data["grantee"],
            total_amount=    int(data["total_amount"]),
            released_amount= int(data["released_amount"]),
            token_address=   data["token_address"],
            created_at=      int(data["created_at"]),
            status=          GrantStatus(data["status"]),
        )


@dataclass
class Milestone:
    """A named slice of a grant, payable once approved."""

    amount:      int
    description: str
    approved:    bool = False
    approved_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount":      self.amount,
            "description": self.description,
            "approved":    self.approved,
            "approved_at": self.approved_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Milestone":
        approved_at = data.get("approved_at")
        return cls(
            amount=      int(data["amount"]),
            description= data["description"],
            approved=    bool(data["approved"]),
            approved_at= int(approved_at) if approved_at is not None else None,
        )
