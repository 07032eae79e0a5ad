"""
GrantGate Store - Grant and Milestone persistence

Two key constructors share one key space:
    GrantKey(grant_id)                   -> Grant record dict
    MilestoneKey(grant_id, milestone_id) -> Milestone record dict
"""

from grantgate.core.models import GrantKey, MilestoneKey
from grantgate.store.base import InMemoryStore, KeyValueStore
from grantgate.store.journal import JournalReport, JournalStore, verify_journal

__all__ = [
    "GrantKey",
    "MilestoneKey",
    "KeyValueStore",
    "InMemoryStore",
    "JournalStore",
    "JournalReport",
    "verify_journal",
]
