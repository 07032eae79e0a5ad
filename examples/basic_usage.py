"""
GrantGate: Basic Usage Example

Demonstrates:
- Wiring an engine to an in-memory token ledger
- Creating a grant and its milestones
- Approving milestones and withdrawing
- Persisting to a signed journal and verifying it
"""

import tempfile
from pathlib import Path

from grantgate import (
    CallerAuthorizer,
    Ed25519KeyManager,
    GrantEngine,
    InMemoryTokenLedger,
    JournalStore,
    ManualClock,
    TokenDirectory,
    compute_claimable_balance,
)
from grantgate.engine.engine import DEFAULT_CUSTODY_ADDRESS


def main():
    """Basic GrantGate usage."""

    print("=" * 60)
    print("GrantGate: Basic Usage Example")
    print("=" * 60)
    print()

    workdir = Path(tempfile.mkdtemp(prefix="grantgate-"))

    # 1. Token ledger with a funded admin and custody account
    print("1. Funding accounts...")
    usdc = InMemoryTokenLedger("USDC")
    usdc.mint("dao-treasury", 5_000_000)
    usdc.mint(DEFAULT_CUSTODY_ADDRESS, 5_000_000)
    tokens = TokenDirectory({"USDC": usdc})
    print(f"   treasury balance: {usdc.balance('dao-treasury')}")
    print()

    # 2. Engine over a signed journal
    print("2. Opening signed journal...")
    key = Ed25519KeyManager.generate()
    store = JournalStore(workdir / "journal.jsonl", key_manager=key)
    caller = CallerAuthorizer()
    clock = ManualClock(1_700_000_000)
    engine = GrantEngine(store, tokens, authorizer=caller, clock=clock)
    print(f"   journal signer: {key.identity[:16]}...")
    print()

    # 3. Admin sets up the grant
    print("3. Creating grant with two milestones...")
    with caller.acting_as("dao-treasury"):
        engine.create_grant("research-2026", "dao-treasury", "lab-wallet", 1_000_000, "USDC")
        engine.add_milestone("research-2026", "prototype", 400_000, "Working prototype")
        engine.add_milestone("research-2026", "audit", 600_000, "External audit")
        engine.activate_grant("research-2026")
    print(f"   status: {engine.get_grant('research-2026').status.value}")
    print()

    # 4. Approvals release funds
    print("4. Approving the prototype milestone...")
    clock.advance(30 * 24 * 3600)
    with caller.acting_as("dao-treasury"):
        report = engine.approve_milestone("research-2026", "prototype")
    print(f"   transferred: {report.amount} (exact={report.exact})")
    print(f"   remaining:   {engine.get_remaining_amount('research-2026')}")
    print()

    # 5. Grantee withdraws part of the released balance
    print("5. Grantee withdraws 150000...")
    with caller.acting_as("lab-wallet"):
        engine.withdraw("research-2026", 150_000)
    print(f"   withdrawable: {engine.get_grant('research-2026').released_amount}")
    print(f"   lab balance:  {usdc.balance('lab-wallet')}")
    print()

    # 6. Verify the journal
    print("6. Verifying journal...")
    result = store.verify()
    print(f"   entries={result.total_entries} signed={result.signed} valid={result.valid}")
    print()

    # 7. Vesting helper
    print("7. Linear vesting, halfway through a year:")
    year = 365 * 24 * 3600
    print(f"   {compute_claimable_balance(1_000_000, 0, year // 2, year)}")
    print()

    print(f"Journal written to {workdir / 'journal.jsonl'}")


if __name__ == "__main__":
    main()
