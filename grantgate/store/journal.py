"""
Journal store for GrantGate.

An append-only JSONL journal of record writes. Every committed write is one
entry; the current state is the last entry per key. Entries are hash-chained
and, when a signing key is configured, Ed25519-signed.

CHAIN CONTRACT:
    data_hash      = SHA-256(JCS(data))
    entry_hash     = SHA-256(JCS({index, previous_hash, key, data_hash}))
    previous_hash  = entry_hash of the prior entry, GENESIS_HASH for the first
    signature      = sign(bytes.fromhex(entry_hash)) by ``signer`` (optional)
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from grantgate.core.canonical import canonical_hash
from grantgate.core.crypto import Ed25519KeyManager
from grantgate.core.exceptions import StoreError
from grantgate.core.models import key_from_list
from grantgate.store.base import KeyValueStore, StoreKey

logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64


@dataclass
class JournalEntry:
    """A single entry in the journal"""
    index:         int
    previous_hash: str
    key:           list
    data:          dict
    data_hash:     str
    signer:        Optional[str] = None
    signature:     Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "index":         self.index,
            "previous_hash": self.previous_hash,
            "key":           self.key,
            "data":          self.data,
            "data_hash":     self.data_hash,
            "signer":        self.signer,
            "signature":     self.signature,
        }

    @staticmethod
    def from_dict(data: dict) -> "JournalEntry":
        return JournalEntry(
            index=         data["index"],
            previous_hash= data["previous_hash"],
            key=           data["key"],
            data=          data["data"],
            data_hash=     data["data_hash"],
            signer=        data.get("signer"),
            signature=     data.get("signature"),
        )

    def compute_hash(self) -> str:
        """Compute hash of this entry for chaining"""
        return canonical_hash({
            "index":         self.index,
            "previous_hash": self.previous_hash,
            "key":           self.key,
            "data_hash":     self.data_hash,
        })


@dataclass
class JournalReport:
    """Outcome of verify_journal()."""
    path:          str
    total_entries: int = 0
    signed:        int = 0
    violations:    List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict:
        return {
            "path":          self.path,
            "total_entries": self.total_entries,
            "signed":        self.signed,
            "valid":         self.valid,
            "violations":    list(self.violations),
        }


def read_journal(path: Path) -> List[JournalEntry]:
    """
    Parse every non-blank line of a journal file.

    Raises:
        StoreError: on malformed JSON or a missing field.
    """
    entries = []
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(JournalEntry.from_dict(json.loads(line)))
            except json.JSONDecodeError as e:
                raise StoreError(f"Invalid JSON at line {line_num}: {e}")
            except KeyError as e:
                raise StoreError(f"Missing field {e} at line {line_num}")
    return entries


def verify_journal(
    path: Path,
    expected_signer: Optional[str] = None,
) -> JournalReport:
    """
    Verify chain linkage, data hashes and signatures of a journal file.

    Args:
        path:            journal file
        expected_signer: if given, every entry must be signed by this identity

    Raises:
        StoreError: when the file cannot be read or parsed.
    """
    path = Path(path)
    if not path.exists():
        raise StoreError(f"Journal not found: {path}")

    entries = read_journal(path)
    report = JournalReport(path=str(path), total_entries=len(entries))

    expected_prev = GENESIS_HASH
    for i, entry in enumerate(entries):
        if entry.index != i:
            report.violations.append(f"Index gap at {i}: entry claims index {entry.index}")

        if entry.previous_hash != expected_prev:
            report.violations.append(
                f"Chain break at index {i}: "
                f"expected {expected_prev}, got {entry.previous_hash}"
            )

        if canonical_hash(entry.data) != entry.data_hash:
            report.violations.append(f"Data hash mismatch at index {i}")

        entry_hash = entry.compute_hash()

        if entry.signature is not None:
            report.signed += 1
            if not Ed25519KeyManager.verify_detached(
                bytes.fromhex(entry_hash), entry.signature, entry.signer
            ):
                report.violations.append(f"Invalid signature at index {i}")
        if expected_signer is not None and entry.signer != expected_signer:
            report.violations.append(
                f"Unexpected signer at index {i}: {entry.signer!r}"
            )

        try:
            key_from_list(entry.key)
        except ValueError as e:
            report.violations.append(f"Index {i}: {e}")

        expected_prev = entry_hash

    return report


class JournalStore(KeyValueStore):
    """
    Durable store backed by an append-only JSONL journal.

    State survives process restart by replaying the journal on __init__;
    the journal is verified first and a damaged journal refuses to load.
    """

    def __init__(
        self,
        journal_path: Path,
        key_manager: Optional[Ed25519KeyManager] = None,
    ) -> None:
        super().__init__()
        self.journal_path = Path(journal_path)
        self.key_manager  = key_manager
        self._entries:     int = 0
        self._last_hash:   str = GENESIS_HASH

        if self.journal_path.exists():
            self._load()

    # ── Public API ────────────────────────────────────────────

    def verify(self) -> JournalReport:
        """Re-verify the journal on disk."""
        if not self.journal_path.exists():
            return JournalReport(path=str(self.journal_path))
        expected = self.key_manager.identity if self.key_manager else None
        return verify_journal(self.journal_path, expected_signer=expected)

    def get_stats(self) -> dict:
        return {
            "journal_path":  str(self.journal_path),
            "total_entries": self._entries,
            "last_hash":     self._last_hash,
            "grants":        len(self.grant_ids()),
            "signed":        self.key_manager is not None,
        }

    # ── Internal ──────────────────────────────────────────────

    def _commit(self, writes: Dict[StoreKey, dict]) -> None:
        entries = []
        index = self._entries
        previous_hash = self._last_hash

        for key, data in writes.items():
            entry = JournalEntry(
                index=         index,
                previous_hash= previous_hash,
                key=           key.to_list(),
                data=          data,
                data_hash=     canonical_hash(data),
            )
            if self.key_manager is not None:
                entry.signer    = self.key_manager.identity
                entry.signature = self.key_manager.sign(bytes.fromhex(entry.compute_hash()))
            entries.append(entry)
            previous_hash = entry.compute_hash()
            index += 1

        self._append(entries)

        self._entries   = index
        self._last_hash = previous_hash
        super()._commit(writes)

    def _append(self, entries: List[JournalEntry]) -> None:
        """Write one commit's entries to disk in a single flushed append."""
        self.journal_path.parent.mkdir(parents=True, exist_ok=True)
        lines = "".join(
            json.dumps(entry.to_dict(), ensure_ascii=False) + "\n"
            for entry in entries
        )
        try:
            with open(self.journal_path, "a", encoding="utf-8") as f:
                f.write(lines)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StoreError(f"Failed to write journal entries: {e}")

    def _load(self) -> None:
        """Verify and replay the journal from disk."""
        expected = self.key_manager.identity if self.key_manager else None
        report = verify_journal(self.journal_path, expected_signer=expected)
        if not report.valid:
            raise StoreError(
                "Journal verification failed",
                {"path": str(self.journal_path), "violations": len(report.violations),
                 "first": report.violations[0]},
            )

        for entry in read_journal(self.journal_path):
            self._records[key_from_list(entry.key)] = entry.data
            self._last_hash = entry.compute_hash()
            self._entries += 1

        logger.debug(
            "Loaded journal %s (%d entries, %d grants)",
            self.journal_path, self._entries, len(self.grant_ids()),
        )

    def __repr__(self) -> str:
        return f"JournalStore(path={str(self.journal_path)!r}, entries={self._entries})"
