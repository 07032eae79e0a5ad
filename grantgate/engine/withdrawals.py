"""
Grantee withdrawals of released funds.

released_amount doubles as the withdrawable balance: there is no separate
withdrawn counter, withdrawing decrements released_amount directly. The
decrement is committed before funds leave custody; a failed payout is
undone by revert_withdrawal().
"""

import logging
from functools import partial

from grantgate.auth.authorizer import Authorizer, require_auth
from grantgate.core.exceptions import InvalidAmount
from grantgate.core.models import validate_amount
from grantgate.engine.records import GrantRepository
from grantgate.token.gateway import PendingTransfer

logger = logging.getLogger(__name__)


class WithdrawalEngine:

    def __init__(
        self,
        records: GrantRepository,
        authorizer: Authorizer,
        custody_address: str,
    ) -> None:
        self.records = records
        self.authorizer = authorizer
        self.custody_address = custody_address

    def withdraw(self, grant_id: str, amount: int) -> PendingTransfer:
        grant = self.records.get_grant(grant_id)
        require_auth(self.authorizer, grant.grantee, "withdraw")

        validate_amount(amount)
        if amount > grant.released_amount:
            raise InvalidAmount(
                "Withdrawal exceeds available balance",
                {"grant_id": grant_id, "amount": amount, "available": grant.released_amount},
            )

        grant.released_amount -= amount
        self.records.put_grant(grant_id, grant)

        logger.info(
            "Grant %s: grantee withdrew %d (%d still available)",
            grant_id, amount, grant.released_amount,
        )

        return PendingTransfer(
            token_address= grant.token_address,
            from_address=  self.custody_address,
            to_address=    grant.grantee,
            amount=        amount,
            revert=        partial(self.revert_withdrawal, grant_id, amount),
        )

    def revert_withdrawal(self, grant_id: str, amount: int) -> None:
        """Give back the balance of a committed withdrawal whose payout failed."""
        grant = self.records.get_grant(grant_id)
        grant.released_amount += amount
        self.records.put_grant(grant_id, grant)

        logger.warning(
            "Grant %s: withdrawal of %d reverted (%d available)",
            grant_id, amount, grant.released_amount,
        )
