"""
tests/test_withdrawals.py

Grantee withdrawals. released_amount is the withdrawable balance and is
decremented directly; funds leave the custody address.
"""

import random

import pytest

from grantgate.core.exceptions import GrantNotFound, InvalidAmount, TransferError, Unauthorized
from grantgate.core.models import GrantStatus
from grantgate.engine.engine import GrantEngine
from grantgate.token.gateway import InMemoryTokenLedger, TokenDirectory

from conftest import ADMIN, CUSTODY, FUNDING, GRANTEE, TOKEN, make_grant


class TestWithdraw:

    def test_withdraw_decrements_released(self, engine, token):
        make_grant(engine, m1=400_000)
        engine.approve_milestone("g1", "m1")

        report = engine.withdraw("g1", 150_000)

        assert engine.get_grant("g1").released_amount == 250_000
        assert report.from_address == CUSTODY
        assert report.to_address == GRANTEE
        assert token.balance(CUSTODY) == FUNDING - 150_000
        assert token.balance(GRANTEE) == 400_000 + 150_000

    def test_withdraw_everything_available(self, engine):
        make_grant(engine, m1=400_000)
        engine.approve_milestone("g1", "m1")
        engine.withdraw("g1", 400_000)
        assert engine.get_grant("g1").released_amount == 0

    def test_zero_rejected(self, engine):
        make_grant(engine, m1=10)
        engine.approve_milestone("g1", "m1")
        with pytest.raises(InvalidAmount):
            engine.withdraw("g1", 0)

    def test_more_than_available_rejected(self, engine):
        make_grant(engine, m1=400_000)
        engine.approve_milestone("g1", "m1")
        with pytest.raises(InvalidAmount):
            engine.withdraw("g1", 400_001)
        assert engine.get_grant("g1").released_amount == 400_000

    def test_nothing_released_yet(self, engine):
        make_grant(engine, m1=10)
        with pytest.raises(InvalidAmount):
            engine.withdraw("g1", 1)

    def test_unknown_grant(self, engine):
        with pytest.raises(GrantNotFound):
            engine.withdraw("missing", 1)

    def test_withdraw_reopens_headroom(self, engine):
        make_grant(engine, m1=1_000_000)
        engine.approve_milestone("g1", "m1")
        assert engine.get_grant("g1").status == GrantStatus.COMPLETED

        engine.withdraw("g1", 300_000)

        grant = engine.get_grant("g1")
        assert grant.status == GrantStatus.COMPLETED
        assert engine.get_remaining_amount("g1") == 300_000

    def test_failed_transfer_rolls_back_withdrawal(self, store, clock):
        token = InMemoryTokenLedger(TOKEN)
        token.mint(ADMIN, 1_000)
        engine = GrantEngine(store, TokenDirectory({TOKEN: token}), clock=clock)
        make_grant(engine, total=1_000, m1=1_000)
        engine.approve_milestone("g1", "m1")

        # custody holds nothing
        with pytest.raises(TransferError):
            engine.withdraw("g1", 500)
        assert engine.get_grant("g1").released_amount == 1_000


class TestWithdrawAuthorization:

    def test_only_grantee_may_withdraw(self, gated_engine, caller):
        with caller.acting_as(ADMIN):
            make_grant(gated_engine, m1=100)
            gated_engine.approve_milestone("g1", "m1")
            with pytest.raises(Unauthorized):
                gated_engine.withdraw("g1", 50)

        with caller.acting_as(GRANTEE):
            gated_engine.withdraw("g1", 50)
        assert gated_engine.get_grant("g1").released_amount == 50


class TestConservation:

    def test_released_plus_withdrawn_equals_approved(self, engine):
        rng = random.Random(99)
        amounts = {f"m{i}": rng.randrange(1, 50_000) for i in range(10)}
        make_grant(engine, total=sum(amounts.values()), **amounts)

        approved = 0
        withdrawn = 0
        for milestone_id, amount in amounts.items():
            engine.approve_milestone("g1", milestone_id)
            approved += amount

            available = engine.get_grant("g1").released_amount
            take = rng.randrange(0, available + 1)
            if take:
                engine.withdraw("g1", take)
                withdrawn += take

            grant = engine.get_grant("g1")
            assert grant.released_amount + withdrawn == approved
            assert 0 <= grant.released_amount <= grant.total_amount
