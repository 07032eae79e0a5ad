"""
Token gateway for GrantGate.

The engine moves funds only through a TokenGateway:

    balance(address) -> int
    transfer(from_address, to_address, amount) -> None

One gateway represents one fungible asset. A TokenDirectory maps a grant's
token_address onto its gateway.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from grantgate.core.exceptions import TransferError

logger = logging.getLogger(__name__)


class TokenGateway:
    """Interface consumed by the engine. Implementations raise TransferError on failure."""

    def balance(self, address: str) -> int:
        raise NotImplementedError

    def transfer(self, from_address: str, to_address: str, amount: int) -> None:
        raise NotImplementedError


class TokenDirectory:
    """token_address -> TokenGateway."""

    def __init__(self, gateways: Optional[Dict[str, TokenGateway]] = None) -> None:
        self._gateways: Dict[str, TokenGateway] = dict(gateways or {})

    def register(self, token_address: str, gateway: TokenGateway) -> None:
        self._gateways[token_address] = gateway

    def resolve(self, token_address: str) -> TokenGateway:
        try:
            return self._gateways[token_address]
        except KeyError:
            raise TransferError(
                "No token gateway registered",
                {"token_address": token_address},
            ) from None

    def __contains__(self, token_address: str) -> bool:
        return token_address in self._gateways


# ─────────────────────────────────────────────────────────────
# In-memory assets
# ─────────────────────────────────────────────────────────────

class InMemoryTokenLedger(TokenGateway):
    """Balances held in a dict. Rejects overdrafts and non-positive amounts."""

    def __init__(self, symbol: str = "TOKEN") -> None:
        self.symbol = symbol
        self._balances: Dict[str, int] = {}

    def balance(self, address: str) -> int:
        return self._balances.get(address, 0)

    def mint(self, address: str, amount: int) -> None:
        if amount <= 0:
            raise TransferError("Mint amount must be positive", {"amount": amount})
        self._balances[address] = self.balance(address) + amount

    def transfer(self, from_address: str, to_address: str, amount: int) -> None:
        if amount <= 0:
            raise TransferError("Transfer amount must be positive", {"amount": amount})
        available = self.balance(from_address)
        if available < amount:
            raise TransferError(
                "Insufficient balance",
                {"token": self.symbol, "from": from_address,
                 "balance": available, "amount": amount},
            )
        self._debit(from_address, amount)
        self._credit(to_address, amount)

    def _debit(self, address: str, amount: int) -> None:
        self._balances[address] = self.balance(address) - amount

    def _credit(self, address: str, amount: int) -> None:
        self._balances[address] = self.balance(address) + amount

    def __repr__(self) -> str:
        return f"{type(self).__name__}(symbol={self.symbol!r}, holders={len(self._balances)})"


class FeeChargingToken(InMemoryTokenLedger):
    """
    Asset that skims ``fee_bps`` basis points of every transfer.

    The sender is debited the full amount; the receiver is credited the
    amount minus the fee, which goes to ``fee_collector``.
    """

    def __init__(self, fee_bps: int, fee_collector: str = "fee-collector", symbol: str = "FEE") -> None:
        super().__init__(symbol=symbol)
        if not 0 <= fee_bps <= 10_000:
            raise ValueError(f"fee_bps must be within 0..10000, got {fee_bps}")
        self.fee_bps = fee_bps
        self.fee_collector = fee_collector

    def transfer(self, from_address: str, to_address: str, amount: int) -> None:
        fee = amount * self.fee_bps // 10_000
        super().transfer(from_address, to_address, amount)
        if fee:
            self._debit(to_address, fee)
            self._credit(self.fee_collector, fee)


# ─────────────────────────────────────────────────────────────
# Balance-checked transfer
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TransferReport:
    """Balances observed around one transfer. Informational only."""
    token_address: str
    from_address:  str
    to_address:    str
    amount:        int
    from_before:   int
    from_after:    int
    to_before:     int
    to_after:      int

    @property
    def from_decrease(self) -> int:
        return max(self.from_before - self.from_after, 0)

    @property
    def to_increase(self) -> int:
        return max(self.to_after - self.to_before, 0)

    @property
    def shortfall(self) -> int:
        """Nominal amount minus what the receiver actually gained."""
        return max(self.amount - self.to_increase, 0)

    @property
    def exact(self) -> bool:
        return self.from_decrease == self.amount and self.to_increase == self.amount


def transfer_tokens(
    tokens: TokenDirectory,
    token_address: str,
    from_address: str,
    to_address: str,
    amount: int,
) -> TransferReport:
    """
    Transfer ``amount`` and record both parties' balances before and after.

    A mismatch between nominal and observed movement (fee-charging assets)
    is logged, never raised. Accounting stays keyed to the nominal amount.
    Gateway failures propagate as TransferError.
    """
    gateway = tokens.resolve(token_address)

    from_before = gateway.balance(from_address)
    to_before   = gateway.balance(to_address)

    gateway.transfer(from_address, to_address, amount)

    report = TransferReport(
        token_address= token_address,
        from_address=  from_address,
        to_address=    to_address,
        amount=        amount,
        from_before=   from_before,
        from_after=    gateway.balance(from_address),
        to_before=     to_before,
        to_after=      gateway.balance(to_address),
    )

    if not report.exact:
        logger.warning(
            "Transfer of %d %s moved %d from %s and delivered %d to %s (shortfall %d)",
            amount, token_address, report.from_decrease, from_address,
            report.to_increase, to_address, report.shortfall,
        )
    return report


@dataclass(frozen=True)
class PendingTransfer:
    """
    A transfer decided by an operation whose record writes are committed
    but whose funds have not moved yet.

    ``revert`` undoes those record writes; the engine commits it when
    execute() raises.
    """
    token_address: str
    from_address:  str
    to_address:    str
    amount:        int
    revert:        Callable[[], None] = field(compare=False, repr=False)

    def execute(self, tokens: TokenDirectory) -> TransferReport:
        return transfer_tokens(
            tokens, self.token_address, self.from_address, self.to_address, self.amount
        )
