"""
GrantGate Token - the funds-movement boundary.
"""

from grantgate.token.gateway import (
    FeeChargingToken,
    InMemoryTokenLedger,
    PendingTransfer,
    TokenDirectory,
    TokenGateway,
    TransferReport,
    transfer_tokens,
)

__all__ = [
    "TokenGateway",
    "TokenDirectory",
    "InMemoryTokenLedger",
    "FeeChargingToken",
    "TransferReport",
    "PendingTransfer",
    "transfer_tokens",
]
