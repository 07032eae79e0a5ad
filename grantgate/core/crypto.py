"""
grantgate/core/crypto.py

GrantGate Cryptographic Layer

An identity in GrantGate is the 64-char lowercase hex of an Ed25519
public key. Ed25519KeyManager holds the private half.

Key contracts:
    identity                : @property → 64-char lowercase hex  (NO parentheses)
    sign(data)              : bytes → base64url str, no padding
    verify_detached(...)    : @staticmethod, verifies with ONLY an identity string
"""

import base64
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
)


class Ed25519KeyManager:
    """
    Ed25519 key manager.

    Public surface:
        Ed25519KeyManager.generate()                        → new random key
        Ed25519KeyManager.from_file(path)                   → load PEM private key
        Ed25519KeyManager.verify_detached(data, sig, ident) → @staticmethod

        key.identity                (@property) → 64-char lowercase hex
        key.sign(data: bytes)                   → base64url str (no padding)
        key.verify(data, sig)                   → bool
        key.save(path)                          → write PEM private key
    """

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key: Ed25519PrivateKey = private_key
        self._public_key:  Ed25519PublicKey  = private_key.public_key()
        self._identity:    str = (
            self._public_key
            .public_bytes(Encoding.Raw, PublicFormat.Raw)
            .hex()
        )

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def generate(cls) -> "Ed25519KeyManager":
        """Generate a new random Ed25519 key pair."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_file(cls, path: Path) -> "Ed25519KeyManager":
        """
        Load an Ed25519 private key from a PEM file.
        Raises FileNotFoundError if path does not exist.
        Raises ValueError if the file is not a valid Ed25519 PEM key.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Key file not found: {path}")
        try:
            private_key = load_pem_private_key(path.read_bytes(), password=None)
        except (ValueError, TypeError) as exc:
            raise ValueError(
                f"Failed to load Ed25519 key from {path}: {exc}"
            ) from exc
        if not isinstance(private_key, Ed25519PrivateKey):
            raise ValueError(
                f"Key file {path} does not contain an Ed25519 private key"
            )
        return cls(private_key)

    # ── Identity ──────────────────────────────────────────────

    @property
    def identity(self) -> str:
        """64-character lowercase hex of the raw public key. A @property."""
        return self._identity

    # ── Signing ───────────────────────────────────────────────

    def sign(self, data: bytes) -> str:
        """
        Sign data with Ed25519. Returns base64url string, no '=' padding.

        Caller is responsible for canonicalization.
        """
        raw_sig = self._private_key.sign(data)
        return base64.urlsafe_b64encode(raw_sig).rstrip(b"=").decode("ascii")

    # ── Verification ──────────────────────────────────────────

    def verify(self, data: bytes, signature_b64: str) -> bool:
        """Verify a signature against this key manager's own identity."""
        return Ed25519KeyManager.verify_detached(data, signature_b64, self._identity)

    @staticmethod
    def verify_detached(data: bytes, signature_b64: str, identity: str) -> bool:
        """
        Verify an Ed25519 signature using ONLY an identity string.

        Returns:
            True if the signature is valid over data for the identity.
            False for ANY failure: wrong key, bad encoding, wrong length,
            corrupted signature. Never raises.
        """
        if not isinstance(identity, str) or len(identity) != 64:
            return False
        if not isinstance(signature_b64, str):
            return False

        try:
            pub = Ed25519PublicKey.from_public_bytes(bytes.fromhex(identity))

            # Re-add base64url padding if stripped
            padding = 4 - len(signature_b64) % 4
            raw_sig = base64.urlsafe_b64decode(signature_b64 + "=" * (padding % 4))
        except ValueError:
            return False

        if len(raw_sig) != 64:
            return False

        try:
            pub.verify(raw_sig, data)
        except InvalidSignature:
            return False
        return True

    # ── Persistence ───────────────────────────────────────────

    def save(self, path: Path) -> None:
        """
        Write the private key to disk as a PEM file.
        Creates parent directories if needed.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        pem = self._private_key.private_bytes(
            encoding=             Encoding.PEM,
            format=               PrivateFormat.PKCS8,
            encryption_algorithm= NoEncryption(),
        )
        path.write_bytes(pem)

    def __repr__(self) -> str:
        return f"Ed25519KeyManager(identity={self._identity[:16]}...)"
