"""
Typed access to Grant and Milestone records in a KeyValueStore.

Missing records raise GrantNotFound / MilestoneNotFound instead of
returning None, so no operation proceeds on a phantom record.
"""

from typing import List

from grantgate.core.exceptions import GrantNotFound, MilestoneNotFound
from grantgate.core.models import Grant, GrantKey, Milestone, MilestoneKey
from grantgate.store.base import KeyValueStore


class GrantRepository:
    """Load and save records by their two key constructors."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get_grant(self, grant_id: str) -> Grant:
        data = self.store.get(GrantKey(grant_id))
        if data is None:
            raise GrantNotFound("Grant not found", {"grant_id": grant_id})
        return Grant.from_dict(data)

    def has_grant(self, grant_id: str) -> bool:
        return self.store.contains(GrantKey(grant_id))

    def put_grant(self, grant_id: str, grant: Grant) -> None:
        self.store.put(GrantKey(grant_id), grant.to_dict())

    def get_milestone(self, grant_id: str, milestone_id: str) -> Milestone:
        data = self.store.get(MilestoneKey(grant_id, milestone_id))
        if data is None:
            raise MilestoneNotFound(
                "Milestone not found",
                {"grant_id": grant_id, "milestone_id": milestone_id},
            )
        return Milestone.from_dict(data)

    def has_milestone(self, grant_id: str, milestone_id: str) -> bool:
        return self.store.contains(MilestoneKey(grant_id, milestone_id))

    def put_milestone(self, grant_id: str, milestone_id: str, milestone: Milestone) -> None:
        self.store.put(MilestoneKey(grant_id, milestone_id), milestone.to_dict())

    def milestone_ids(self, grant_id: str) -> List[str]:
        return self.store.milestone_ids(grant_id)
