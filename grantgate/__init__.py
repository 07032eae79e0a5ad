"""
grantgate/__init__.py

GrantGate: milestone-gated fund release with linear vesting math.

An admin commits a fixed total to a grantee; funds are released only as
individually approved milestones, under a Proposed/Active/Paused/Completed/
Cancelled lifecycle. Released funds never exceed the committed total.
"""

__version__ = "0.1.0"

from grantgate.auth.authorizer import (
    AllowAllAuthorizer,
    Authorizer,
    CallerAuthorizer,
    SignatureAuthorizer,
    SignedRequest,
)
from grantgate.core.crypto import Ed25519KeyManager
from grantgate.core.exceptions import (
    AlreadyApproved,
    DuplicateMilestone,
    ExceedsTotalAmount,
    GrantAlreadyExists,
    GrantError,
    GrantGateError,
    GrantNotFound,
    InvalidAmount,
    InvalidStatus,
    MilestoneNotFound,
    StoreError,
    TransferError,
    Unauthorized,
)
from grantgate.core.models import (
    U64_MAX,
    U128_MAX,
    Grant,
    GrantKey,
    GrantStatus,
    Milestone,
    MilestoneKey,
)
from grantgate.core.time import Clock, ManualClock, SystemClock
from grantgate.core.vesting import compute_claimable_balance
from grantgate.engine.engine import GrantEngine
from grantgate.store.base import InMemoryStore, KeyValueStore
from grantgate.store.journal import JournalStore
from grantgate.token.gateway import (
    FeeChargingToken,
    InMemoryTokenLedger,
    TokenDirectory,
    TokenGateway,
    TransferReport,
)

__all__ = [
    # Engine
    "GrantEngine",
    "compute_claimable_balance",
    # Records
    "Grant",
    "GrantKey",
    "GrantStatus",
    "Milestone",
    "MilestoneKey",
    # Collaborators
    "Authorizer",
    "AllowAllAuthorizer",
    "CallerAuthorizer",
    "SignatureAuthorizer",
    "SignedRequest",
    "Ed25519KeyManager",
    "Clock",
    "ManualClock",
    "SystemClock",
    "KeyValueStore",
    "InMemoryStore",
    "JournalStore",
    "TokenGateway",
    "TokenDirectory",
    "InMemoryTokenLedger",
    "FeeChargingToken",
    "TransferReport",
    # Errors
    "GrantGateError",
    "GrantError",
    "GrantNotFound",
    "Unauthorized",
    "InvalidAmount",
    "MilestoneNotFound",
    "AlreadyApproved",
    "ExceedsTotalAmount",
    "InvalidStatus",
    "DuplicateMilestone",
    "GrantAlreadyExists",
    "StoreError",
    "TransferError",
    # Constants
    "U64_MAX",
    "U128_MAX",
]
