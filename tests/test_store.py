"""
tests/test_store.py

Transactional store and the hash-chained journal.

  TRANSACTIONS
    staged writes are visible inside, invisible after rollback
    nested transactions roll back to their savepoint only
    put() outside a transaction commits at once

  JOURNAL
    state survives reload
    rolled-back operations never reach disk
    tampering, reordering and foreign signers are detected
    amounts beyond 2**53 are hashed exactly
    records are durable before funds move
"""

import json

import pytest

from grantgate.core.canonical import canonical_hash, canonicalize
from grantgate.core.crypto import Ed25519KeyManager
from grantgate.core.exceptions import AlreadyApproved, InvalidAmount, StoreError, TransferError
from grantgate.core.models import U128_MAX, GrantKey, GrantStatus, MilestoneKey, key_from_list
from grantgate.engine.engine import GrantEngine
from grantgate.store.base import InMemoryStore
from grantgate.store.journal import GENESIS_HASH, JournalStore, read_journal, verify_journal
from grantgate.token.gateway import InMemoryTokenLedger, TokenDirectory

from conftest import ADMIN, GRANTEE, make_grant


class Boom(Exception):
    pass


# ─────────────────────────────────────────────────────────────
# Transactions
# ─────────────────────────────────────────────────────────────

class TestTransactions:

    def test_put_outside_transaction_commits(self):
        store = InMemoryStore()
        store.put(GrantKey("g1"), {"v": 1})
        assert store.get(GrantKey("g1")) == {"v": 1}
        assert not store.in_transaction

    def test_staged_writes_visible_then_committed(self):
        store = InMemoryStore()
        with store.transaction():
            store.put(GrantKey("g1"), {"v": 1})
            assert store.get(GrantKey("g1")) == {"v": 1}
            assert store.grant_ids() == ["g1"]
        assert store.get(GrantKey("g1")) == {"v": 1}

    def test_exception_discards_staged_writes(self):
        store = InMemoryStore()
        store.put(GrantKey("g1"), {"v": 1})
        with pytest.raises(Boom):
            with store.transaction():
                store.put(GrantKey("g1"), {"v": 2})
                store.put(MilestoneKey("g1", "m1"), {"v": 3})
                raise Boom()
        assert store.get(GrantKey("g1")) == {"v": 1}
        assert store.get(MilestoneKey("g1", "m1")) is None

    def test_nested_rollback_keeps_outer_writes(self):
        store = InMemoryStore()
        with store.transaction():
            store.put(GrantKey("outer"), {"v": 1})
            with pytest.raises(Boom):
                with store.transaction():
                    store.put(GrantKey("inner"), {"v": 2})
                    raise Boom()
            assert store.get(GrantKey("inner")) is None
        assert store.grant_ids() == ["outer"]

    def test_returned_records_are_copies(self):
        store = InMemoryStore()
        store.put(GrantKey("g1"), {"v": 1})
        record = store.get(GrantKey("g1"))
        record["v"] = 99
        assert store.get(GrantKey("g1")) == {"v": 1}

    def test_milestone_ids_scoped_to_grant(self):
        store = InMemoryStore()
        store.put(MilestoneKey("g1", "b"), {})
        store.put(MilestoneKey("g1", "a"), {})
        store.put(MilestoneKey("g2", "c"), {})
        assert store.milestone_ids("g1") == ["a", "b"]

    def test_rejects_foreign_keys(self):
        with pytest.raises(TypeError):
            InMemoryStore().put(("grant", "g1"), {})

    def test_key_round_trip(self):
        for key in (GrantKey("g1"), MilestoneKey("g1", "m1")):
            assert key_from_list(key.to_list()) == key
        with pytest.raises(ValueError):
            key_from_list(["account", "x"])


# ─────────────────────────────────────────────────────────────
# Journal
# ─────────────────────────────────────────────────────────────

@pytest.fixture
def journal_path(tmp_path):
    return tmp_path / "state" / "journal.jsonl"


def run_scenario(store, tokens, clock):
    engine = GrantEngine(store, tokens, clock=clock)
    make_grant(engine, m1=250_000, m2=750_000)
    engine.activate_grant("g1")
    engine.approve_milestone("g1", "m1")
    return engine


class TestJournalStore:

    def test_state_survives_reload(self, journal_path, tokens, clock):
        run_scenario(JournalStore(journal_path), tokens, clock)

        reloaded = GrantEngine(JournalStore(journal_path), tokens, clock=clock)
        grant = reloaded.get_grant("g1")
        assert grant.status == GrantStatus.ACTIVE
        assert grant.released_amount == 250_000
        assert reloaded.get_milestone("g1", "m1").approved is True
        assert reloaded.get_milestone("g1", "m2").approved is False

    def test_one_entry_per_write(self, journal_path, tokens, clock):
        run_scenario(JournalStore(journal_path), tokens, clock)
        entries = read_journal(journal_path)
        # create, 2x add, activate, approve (milestone + grant)
        assert len(entries) == 6
        assert entries[0].previous_hash == GENESIS_HASH
        assert [e.index for e in entries] == list(range(6))

    def test_rejected_operation_never_reaches_disk(self, journal_path, tokens, clock):
        engine = run_scenario(JournalStore(journal_path), tokens, clock)
        lines_before = journal_path.read_text().count("\n")

        with pytest.raises(InvalidAmount):
            engine.withdraw("g1", 10 ** 9)

        assert journal_path.read_text().count("\n") == lines_before

    def test_appends_continue_the_chain_after_reload(self, journal_path, tokens, clock):
        run_scenario(JournalStore(journal_path), tokens, clock)
        engine = GrantEngine(JournalStore(journal_path), tokens, clock=clock)
        engine.approve_milestone("g1", "m2")

        assert verify_journal(journal_path).valid
        assert JournalStore(journal_path).get_stats()["total_entries"] == 8

    def test_signed_journal(self, journal_path, tokens, clock):
        key = Ed25519KeyManager.generate()
        run_scenario(JournalStore(journal_path, key_manager=key), tokens, clock)

        report = verify_journal(journal_path, expected_signer=key.identity)
        assert report.valid
        assert report.signed == report.total_entries == 6

        JournalStore(journal_path, key_manager=key)

    def test_foreign_signer_refused(self, journal_path, tokens, clock):
        run_scenario(JournalStore(journal_path, key_manager=Ed25519KeyManager.generate()), tokens, clock)
        other = Ed25519KeyManager.generate()
        with pytest.raises(StoreError):
            JournalStore(journal_path, key_manager=other)

    def test_tampered_amount_detected(self, journal_path, tokens, clock):
        run_scenario(JournalStore(journal_path), tokens, clock)

        lines = journal_path.read_text().splitlines()
        entry = json.loads(lines[0])
        entry["data"]["total_amount"] = 10 ** 12
        lines[0] = json.dumps(entry)
        journal_path.write_text("\n".join(lines) + "\n")

        report = verify_journal(journal_path)
        assert not report.valid
        assert any("Data hash mismatch at index 0" in v for v in report.violations)
        with pytest.raises(StoreError):
            JournalStore(journal_path)

    def test_removed_entry_breaks_chain(self, journal_path, tokens, clock):
        run_scenario(JournalStore(journal_path), tokens, clock)
        lines = journal_path.read_text().splitlines()
        del lines[2]
        journal_path.write_text("\n".join(lines) + "\n")

        report = verify_journal(journal_path)
        assert any("Chain break" in v for v in report.violations)

    def test_malformed_line(self, journal_path):
        journal_path.parent.mkdir(parents=True)
        journal_path.write_text('{"index": 0,\n')
        with pytest.raises(StoreError):
            verify_journal(journal_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(StoreError):
            verify_journal(tmp_path / "nope.jsonl")


# ─────────────────────────────────────────────────────────────
# Exact amounts
# ─────────────────────────────────────────────────────────────

class TestExactAmounts:

    def test_large_ints_are_hashed_exactly(self):
        assert canonicalize({"a": U128_MAX}) == b'{"a":"%d"}' % U128_MAX
        assert canonical_hash({"a": 10 ** 21}) != canonical_hash({"a": 10 ** 21 + 50_000})

    def test_small_ints_stay_numbers(self):
        assert canonicalize({"b": [1, True], "a": 5}) == b'{"a":5,"b":[1,true]}'

    def test_large_amount_tamper_detected(self, journal_path, tokens, clock):
        engine = GrantEngine(JournalStore(journal_path), tokens, clock=clock)
        make_grant(engine, total=10 ** 21)

        lines = journal_path.read_text().splitlines()
        entry = json.loads(lines[0])
        entry["data"]["total_amount"] = 10 ** 21 + 50_000
        lines[0] = json.dumps(entry)
        journal_path.write_text("\n".join(lines) + "\n")

        assert not verify_journal(journal_path).valid
        with pytest.raises(StoreError):
            JournalStore(journal_path)

    def test_large_amount_survives_reload(self, journal_path, tokens, clock):
        engine = GrantEngine(JournalStore(journal_path), tokens, clock=clock)
        make_grant(engine, total=U128_MAX)
        reloaded = GrantEngine(JournalStore(journal_path), tokens, clock=clock)
        assert reloaded.get_grant("g1").total_amount == U128_MAX


# ─────────────────────────────────────────────────────────────
# Durability before payout
# ─────────────────────────────────────────────────────────────

class TestDurableBeforeTransfer:

    def test_failed_append_moves_no_funds(self, journal_path, token, tokens, clock, monkeypatch):
        store = JournalStore(journal_path)
        engine = GrantEngine(store, tokens, clock=clock)
        make_grant(engine, total=1_000, m1=1_000)

        def disk_full(entries):
            raise StoreError("disk full")

        monkeypatch.setattr(store, "_append", disk_full)
        with pytest.raises(StoreError):
            engine.approve_milestone("g1", "m1")
        assert token.balance(GRANTEE) == 0
        assert engine.get_milestone("g1", "m1").approved is False

        monkeypatch.undo()
        engine.approve_milestone("g1", "m1")
        assert token.balance(GRANTEE) == 1_000
        with pytest.raises(AlreadyApproved):
            engine.approve_milestone("g1", "m1")
        assert token.balance(GRANTEE) == 1_000

    def test_failed_transfer_is_compensated_in_journal(self, journal_path, clock):
        broke = InMemoryTokenLedger("BROKE")
        engine = GrantEngine(JournalStore(journal_path), TokenDirectory({"BROKE": broke}), clock=clock)
        engine.create_grant("g1", ADMIN, GRANTEE, 1_000, "BROKE")
        engine.add_milestone("g1", "m1", 1_000, "Phase 1")

        with pytest.raises(TransferError):
            engine.approve_milestone("g1", "m1")

        # create, add, approve (milestone + grant), revert (milestone + grant)
        assert verify_journal(journal_path).total_entries == 6
        reloaded = GrantEngine(JournalStore(journal_path), TokenDirectory({"BROKE": broke}), clock=clock)
        grant = reloaded.get_grant("g1")
        assert grant.released_amount == 0
        assert grant.status == GrantStatus.PROPOSED
        assert reloaded.get_milestone("g1", "m1").approved is False
