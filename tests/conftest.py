"""
Shared fixtures for the GrantGate test suite.

Every engine here runs on an InMemoryStore, a ManualClock and an
InMemoryTokenLedger registered as TOKEN, with the admin and the custody
address pre-funded.
"""

import pytest

from grantgate.auth.authorizer import CallerAuthorizer
from grantgate.core.time import ManualClock
from grantgate.engine.engine import DEFAULT_CUSTODY_ADDRESS, GrantEngine
from grantgate.store.base import InMemoryStore
from grantgate.token.gateway import InMemoryTokenLedger, TokenDirectory


ADMIN     = "admin-addr"
GRANTEE   = "grantee-addr"
OUTSIDER  = "outsider-addr"
TOKEN     = "USDC"
CUSTODY   = DEFAULT_CUSTODY_ADDRESS
START     = 1_700_000_000
FUNDING   = 10 ** 15


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def token():
    ledger = InMemoryTokenLedger(TOKEN)
    ledger.mint(ADMIN, FUNDING)
    ledger.mint(CUSTODY, FUNDING)
    return ledger


@pytest.fixture
def tokens(token):
    return TokenDirectory({TOKEN: token})


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def engine(store, tokens, clock):
    """Engine that authorizes every identity."""
    return GrantEngine(store, tokens, clock=clock)


@pytest.fixture
def caller():
    return CallerAuthorizer()


@pytest.fixture
def gated_engine(store, tokens, clock, caller):
    """Engine that authorizes only the identity ``caller`` is acting as."""
    return GrantEngine(store, tokens, authorizer=caller, clock=clock)


def make_grant(engine, grant_id="g1", total=1_000_000, **milestones):
    """Create a grant and add ``milestones`` given as milestone_id=amount."""
    engine.create_grant(grant_id, ADMIN, GRANTEE, total, TOKEN)
    for milestone_id, amount in milestones.items():
        engine.add_milestone(grant_id, milestone_id, amount, f"Phase {milestone_id}")
    return engine.get_grant(grant_id)
