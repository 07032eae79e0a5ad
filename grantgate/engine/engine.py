"""
GrantEngine: the public face of GrantGate.

Every mutating operation runs as one atomic unit of work:

    with store.transaction():
        load -> authorize -> validate -> mutate -> write
    transfer

An exception inside the transaction discards every staged write. Record
writes are durable before any funds move; if the transfer then raises, a
second transaction writes the compensating records and the error
propagates. A crash between the two leaves the records ahead of the token
ledger (released but unpaid), never behind it. Called inside a host
transaction, durability is the host's: the commit happens at its exit.

The engine starts no threads and holds no locks; the host serializes
invocations per grant.
"""

import logging
from typing import Any, Callable, List, Optional, Set

from grantgate.auth.authorizer import (
    AllowAllAuthorizer,
    Authorizer,
    SignatureAuthorizer,
    SignedRequest,
    require_auth,
)
from grantgate.core.exceptions import GrantAlreadyExists, GrantError
from grantgate.core.models import Grant, GrantStatus, Milestone, validate_amount
from grantgate.core.time import Clock, SystemClock
from grantgate.engine.lifecycle import GrantLifecycle
from grantgate.engine.milestones import MilestoneEngine
from grantgate.engine.records import GrantRepository
from grantgate.engine.withdrawals import WithdrawalEngine
from grantgate.store.base import KeyValueStore
from grantgate.token.gateway import PendingTransfer, TokenDirectory, TransferReport

logger = logging.getLogger(__name__)

DEFAULT_CUSTODY_ADDRESS = "grantgate-custody"

# Operations a SignedRequest may name.
SUBMITTABLE_OPERATIONS = frozenset({
    "create_grant",
    "add_milestone",
    "approve_milestone",
    "withdraw",
    "activate_grant",
    "pause_grant",
    "resume_grant",
    "cancel_grant",
})


class GrantEngine:
    """
    Milestone-gated fund release.

    Args:
        store:           transactional record store
        tokens:          token_address -> TokenGateway
        authorizer:      identity gate (defaults to AllowAllAuthorizer)
        clock:           ledger time source (defaults to SystemClock)
        custody_address: the engine's own balance, source of withdrawals
        require_active_for_approval:
                         refuse approvals unless the grant is Active
    """

    def __init__(
        self,
        store: KeyValueStore,
        tokens: TokenDirectory,
        authorizer: Optional[Authorizer] = None,
        clock: Optional[Clock] = None,
        custody_address: str = DEFAULT_CUSTODY_ADDRESS,
        require_active_for_approval: bool = False,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.authorizer = authorizer or AllowAllAuthorizer()
        self.clock = clock or SystemClock()
        self.custody_address = custody_address
        self.require_active_for_approval = require_active_for_approval

        self.records = GrantRepository(store)
        self.lifecycle = GrantLifecycle(self.records, self.authorizer)
        self.milestones = MilestoneEngine(
            self.records,
            self.authorizer,
            self.clock,
            require_active_for_approval=require_active_for_approval,
        )
        self.withdrawals = WithdrawalEngine(self.records, self.authorizer, custody_address)

    def using(self, authorizer: Authorizer) -> "GrantEngine":
        """A sibling engine sharing store, tokens and clock, gated by ``authorizer``."""
        return GrantEngine(
            self.store,
            self.tokens,
            authorizer=authorizer,
            clock=self.clock,
            custody_address=self.custody_address,
            require_active_for_approval=self.require_active_for_approval,
        )

    # ── Grants ────────────────────────────────────────────────

    def create_grant(
        self,
        grant_id: str,
        admin: str,
        grantee: str,
        total_amount: int,
        token_address: str,
    ) -> Grant:
        def op() -> Grant:
            require_auth(self.authorizer, admin, "create_grant")
            validate_amount(total_amount, "total_amount")
            if self.records.has_grant(grant_id):
                raise GrantAlreadyExists("Grant already exists", {"grant_id": grant_id})

            grant = Grant(
                admin=           admin,
                grantee=         grantee,
                total_amount=    total_amount,
                released_amount= 0,
                token_address=   token_address,
                created_at=      self.clock.now(),
                status=          GrantStatus.PROPOSED,
            )
            self.records.put_grant(grant_id, grant)
            logger.info("Grant %s created: %d %s for %s", grant_id, total_amount, token_address, grantee)
            return grant

        return self._run("create_grant", op)

    def activate_grant(self, grant_id: str) -> Grant:
        return self._run("activate_grant", lambda: self.lifecycle.activate(grant_id))

    def pause_grant(self, grant_id: str) -> Grant:
        return self._run("pause_grant", lambda: self.lifecycle.pause(grant_id))

    def resume_grant(self, grant_id: str) -> Grant:
        return self._run("resume_grant", lambda: self.lifecycle.resume(grant_id))

    def cancel_grant(self, grant_id: str) -> Grant:
        return self._run("cancel_grant", lambda: self.lifecycle.cancel(grant_id))

    # ── Milestones ────────────────────────────────────────────

    def add_milestone(
        self,
        grant_id: str,
        milestone_id: str,
        amount: int,
        description: str,
    ) -> Milestone:
        return self._run(
            "add_milestone",
            lambda: self.milestones.create(grant_id, milestone_id, amount, description),
        )

    def approve_milestone(self, grant_id: str, milestone_id: str) -> TransferReport:
        return self._settle(
            "approve_milestone",
            lambda: self.milestones.approve(grant_id, milestone_id),
        )

    # ── Withdrawals ───────────────────────────────────────────

    def withdraw(self, grant_id: str, amount: int) -> TransferReport:
        return self._settle("withdraw", lambda: self.withdrawals.withdraw(grant_id, amount))

    # ── Queries ───────────────────────────────────────────────

    def get_grant(self, grant_id: str) -> Grant:
        return self.records.get_grant(grant_id)

    def get_milestone(self, grant_id: str, milestone_id: str) -> Milestone:
        return self.records.get_milestone(grant_id, milestone_id)

    def list_milestones(self, grant_id: str) -> List[str]:
        self.records.get_grant(grant_id)
        return self.records.milestone_ids(grant_id)

    def get_remaining_amount(self, grant_id: str) -> int:
        return self.records.get_grant(grant_id).remaining_amount

    # ── Signed requests ───────────────────────────────────────

    def submit(self, request: SignedRequest, seen_nonces: Optional[Set[str]] = None) -> Any:
        """
        Execute the operation named by a signed request, authorized only by
        the signatures it carries. With ``seen_nonces``, the nonce stays
        used only if the operation succeeds.

        Raises:
            ValueError: if the request names an operation that cannot be submitted.
        """
        if request.operation not in SUBMITTABLE_OPERATIONS:
            raise ValueError(f"Operation cannot be submitted: {request.operation!r}")
        authorizer = SignatureAuthorizer(request, seen_nonces)
        try:
            return getattr(self.using(authorizer), request.operation)(**request.params)
        except Exception:
            authorizer.release()
            raise

    # ── Internal ──────────────────────────────────────────────

    def _run(self, operation: str, op: Callable[[], Any]) -> Any:
        try:
            with self.store.transaction():
                return op()
        except GrantError as e:
            logger.debug("%s rejected: %s", operation, e)
            raise

    def _settle(self, operation: str, op: Callable[[], PendingTransfer]) -> TransferReport:
        """Commit ``op``'s record writes, then execute the transfer it decided on."""
        pending = self._run(operation, op)
        try:
            return pending.execute(self.tokens)
        except Exception:
            logger.warning("%s: transfer failed, reverting records", operation)
            self._run(f"{operation} revert", pending.revert)
            raise

    def __repr__(self) -> str:
        return f"GrantEngine(store={self.store!r}, custody={self.custody_address!r})"
