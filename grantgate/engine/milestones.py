"""
Milestone creation and approval.

approve() follows checks-effects-interactions, in this exact order:
  1. Load grant, authorize admin, load milestone
  2. Reject a milestone that is already approved
  3. new_released = released + amount   (u128-checked)
  4. Reject new_released > total_amount
  5. Mark milestone approved, advance released_amount, complete if full
  6. Write milestone and grant to the store
  7. Return the transfer of milestone.amount from admin to grantee as a
     PendingTransfer; GrantEngine executes it once step 6 is committed

A transfer that re-enters the engine sees approved=True and fails with
AlreadyApproved. A transfer that raises runs revert_approval().
"""

import logging
from functools import partial

from grantgate.auth.authorizer import Authorizer, require_auth
from grantgate.core.exceptions import (
    AlreadyApproved,
    DuplicateMilestone,
    ExceedsTotalAmount,
    InvalidStatus,
)
from grantgate.core.models import U128_MAX, GrantStatus, Milestone, validate_amount
from grantgate.core.time import Clock
from grantgate.engine.lifecycle import complete_if_fully_released
from grantgate.engine.records import GrantRepository
from grantgate.token.gateway import PendingTransfer

logger = logging.getLogger(__name__)


class MilestoneEngine:

    def __init__(
        self,
        records: GrantRepository,
        authorizer: Authorizer,
        clock: Clock,
        require_active_for_approval: bool = False,
    ) -> None:
        self.records = records
        self.authorizer = authorizer
        self.clock = clock
        self.require_active_for_approval = require_active_for_approval

    def create(
        self,
        grant_id: str,
        milestone_id: str,
        amount: int,
        description: str,
    ) -> Milestone:
        """
        Add an unapproved milestone to a grant.

        The cumulative milestone total is not checked here; the ceiling is
        enforced at approval time.
        """
        grant = self.records.get_grant(grant_id)
        require_auth(self.authorizer, grant.admin, "add_milestone")

        validate_amount(amount)
        if self.records.has_milestone(grant_id, milestone_id):
            raise DuplicateMilestone(
                "Milestone already exists",
                {"grant_id": grant_id, "milestone_id": milestone_id},
            )

        milestone = Milestone(amount=amount, description=description)
        self.records.put_milestone(grant_id, milestone_id, milestone)

        logger.info("Milestone %s/%s added (%d)", grant_id, milestone_id, amount)
        return milestone

    def approve(self, grant_id: str, milestone_id: str) -> PendingTransfer:
        grant = self.records.get_grant(grant_id)
        require_auth(self.authorizer, grant.admin, "approve_milestone")

        milestone = self.records.get_milestone(grant_id, milestone_id)

        # ── Checks ────────────────────────────────────────────
        if self.require_active_for_approval and grant.status != GrantStatus.ACTIVE:
            raise InvalidStatus(
                "Milestones can only be approved on an active grant",
                {"grant_id": grant_id, "status": grant.status.value},
            )

        if milestone.approved:
            raise AlreadyApproved(
                "Milestone already approved",
                {"grant_id": grant_id, "milestone_id": milestone_id,
                 "approved_at": milestone.approved_at},
            )

        previous_status = grant.status
        new_released = grant.released_amount + milestone.amount
        if new_released > U128_MAX:
            raise ExceedsTotalAmount(
                "Released amount overflow",
                {"grant_id": grant_id, "milestone_id": milestone_id},
            )
        if new_released > grant.total_amount:
            raise ExceedsTotalAmount(
                "Approval would exceed the grant total",
                {"grant_id": grant_id, "released": grant.released_amount,
                 "amount": milestone.amount, "total": grant.total_amount},
            )

        # ── Effects ───────────────────────────────────────────
        milestone.approved = True
        milestone.approved_at = self.clock.now()
        grant.released_amount = new_released
        completed = complete_if_fully_released(grant)

        self.records.put_milestone(grant_id, milestone_id, milestone)
        self.records.put_grant(grant_id, grant)

        logger.info(
            "Milestone %s/%s approved: released %d/%d%s",
            grant_id, milestone_id, grant.released_amount, grant.total_amount,
            " (grant completed)" if completed else "",
        )

        # ── Interaction (executed by the caller after commit) ──
        return PendingTransfer(
            token_address= grant.token_address,
            from_address=  grant.admin,
            to_address=    grant.grantee,
            amount=        milestone.amount,
            revert=        partial(self.revert_approval, grant_id, milestone_id, previous_status),
        )

    def revert_approval(self, grant_id: str, milestone_id: str, previous_status: GrantStatus) -> None:
        """Undo a committed approval whose transfer failed."""
        grant = self.records.get_grant(grant_id)
        milestone = self.records.get_milestone(grant_id, milestone_id)

        milestone.approved = False
        milestone.approved_at = None
        grant.released_amount = max(grant.released_amount - milestone.amount, 0)
        if grant.status == GrantStatus.COMPLETED:
            grant.status = previous_status

        self.records.put_milestone(grant_id, milestone_id, milestone)
        self.records.put_grant(grant_id, grant)

        logger.warning(
            "Milestone %s/%s approval reverted: released back to %d",
            grant_id, milestone_id, grant.released_amount,
        )
