"""
Grant status state machine.

    activate : Proposed          -> Active
    pause    : Active            -> Paused
    resume   : Paused            -> Active
    cancel   : Proposed | Paused -> Cancelled

Completed is never requested directly; it is entered by milestone approval
when released_amount reaches total_amount. Completed and Cancelled are
terminal. Transitions touch status only.
"""

import logging
from typing import Dict, FrozenSet, Tuple

from grantgate.auth.authorizer import Authorizer, require_auth
from grantgate.core.exceptions import InvalidStatus
from grantgate.core.models import Grant, GrantStatus
from grantgate.engine.records import GrantRepository

logger = logging.getLogger(__name__)


TRANSITIONS: Dict[str, Tuple[FrozenSet[GrantStatus], GrantStatus]] = {
    "activate": (frozenset({GrantStatus.PROPOSED}), GrantStatus.ACTIVE),
    "pause":    (frozenset({GrantStatus.ACTIVE}), GrantStatus.PAUSED),
    "resume":   (frozenset({GrantStatus.PAUSED}), GrantStatus.ACTIVE),
    "cancel":   (frozenset({GrantStatus.PROPOSED, GrantStatus.PAUSED}), GrantStatus.CANCELLED),
}


def next_status(current: GrantStatus, action: str) -> GrantStatus:
    """Target status of ``action`` from ``current``, or InvalidStatus."""
    try:
        sources, target = TRANSITIONS[action]
    except KeyError:
        raise ValueError(f"Unknown lifecycle action: {action!r}") from None
    if current not in sources:
        raise InvalidStatus(
            f"Cannot {action} a grant in status {current.value}",
            {"status": current.value, "allowed_from": ",".join(sorted(s.value for s in sources))},
        )
    return target


def complete_if_fully_released(grant: Grant) -> bool:
    """Mark ``grant`` Completed when nothing remains. Returns True if it did."""
    if grant.released_amount == grant.total_amount:
        grant.status = GrantStatus.COMPLETED
        return True
    return False


class GrantLifecycle:
    """Admin-driven status transitions."""

    def __init__(self, records: GrantRepository, authorizer: Authorizer) -> None:
        self.records = records
        self.authorizer = authorizer

    def transition(self, grant_id: str, action: str) -> Grant:
        grant = self.records.get_grant(grant_id)
        require_auth(self.authorizer, grant.admin, f"{action}_grant")

        previous = grant.status
        grant.status = next_status(previous, action)
        self.records.put_grant(grant_id, grant)

        logger.info("Grant %s: %s -> %s", grant_id, previous.value, grant.status.value)
        return grant

    def activate(self, grant_id: str) -> Grant:
        return self.transition(grant_id, "activate")

    def pause(self, grant_id: str) -> Grant:
        return self.transition(grant_id, "pause")

    def resume(self, grant_id: str) -> Grant:
        return self.transition(grant_id, "resume")

    def cancel(self, grant_id: str) -> Grant:
        return self.transition(grant_id, "cancel")
