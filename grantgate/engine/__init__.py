"""
GrantGate Engine

Components, leaves first:
- GrantLifecycle:   Proposed -> Active <-> Paused, Cancelled, Completed
- MilestoneEngine:  milestone creation and approval, released <= total
- WithdrawalEngine: grantee withdrawal of released funds
- GrantEngine:      the facade; one store transaction per operation

Critical Invariants:
- released_amount never exceeds total_amount
- a milestone is approved at most once
- state is written before any token transfer
"""

from grantgate.engine.engine import GrantEngine, SUBMITTABLE_OPERATIONS
from grantgate.engine.lifecycle import GrantLifecycle, TRANSITIONS, next_status
from grantgate.engine.milestones import MilestoneEngine
from grantgate.engine.records import GrantRepository
from grantgate.engine.withdrawals import WithdrawalEngine

__all__ = [
    "GrantEngine",
    "GrantLifecycle",
    "GrantRepository",
    "MilestoneEngine",
    "WithdrawalEngine",
    "SUBMITTABLE_OPERATIONS",
    "TRANSITIONS",
    "next_status",
]
