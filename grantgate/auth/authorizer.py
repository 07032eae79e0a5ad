"""
Authorization gate for GrantGate.

The engine never proves identity itself. Every mutating operation asks the
injected Authorizer whether the required identity (the grant's admin or
grantee) has authorized this invocation:

    authorizer.authorize(identity) -> bool

Denial becomes Unauthorized before any engine check runs.
"""

import secrets
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Set

from grantgate.core.canonical import canonicalize
from grantgate.core.crypto import Ed25519KeyManager
from grantgate.core.exceptions import Unauthorized

# Nonce: exactly 32 hex characters = 128-bit entropy
_NONCE_HEX_LENGTH = 32


class Authorizer:
    """Grants or denies a claimed identity for the current invocation."""

    def authorize(self, identity: str) -> bool:
        raise NotImplementedError


def require_auth(authorizer: Authorizer, identity: str, operation: str) -> None:
    """Raise Unauthorized unless ``authorizer`` grants ``identity``."""
    if not authorizer.authorize(identity):
        raise Unauthorized(
            f"{operation} requires authorization",
            {"identity": identity},
        )


class AllowAllAuthorizer(Authorizer):
    """Grants every identity. For tests and trusted single-operator hosts."""

    def authorize(self, identity: str) -> bool:
        return True


class CallerAuthorizer(Authorizer):
    """
    Grants exactly the identity of the current caller.

    The host sets the caller after authenticating it by its own means:

        auth = CallerAuthorizer()
        with auth.acting_as(admin):
            engine.activate_grant("g1")
    """

    def __init__(self, caller: Optional[str] = None) -> None:
        self.caller = caller

    def authorize(self, identity: str) -> bool:
        return self.caller is not None and identity == self.caller

    @contextmanager
    def acting_as(self, identity: str) -> Iterator["CallerAuthorizer"]:
        previous, self.caller = self.caller, identity
        try:
            yield self
        finally:
            self.caller = previous


# ─────────────────────────────────────────────────────────────
# Signed requests
# ─────────────────────────────────────────────────────────────

@dataclass
class SignedRequest:
    """
    One engine invocation, signed by the identities that authorize it.

    bytes_signed = canonicalize(request.signing_payload())   (RFC 8785)
    The nonce makes every request unique, so a captured request cannot be
    replayed against an authorizer that tracks seen nonces.
    """

    operation:  str
    params:     Dict[str, Any]
    nonce:      str
    signatures: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(cls, operation: str, **params: Any) -> "SignedRequest":
        return cls(
            operation= operation,
            params=    params,
            nonce=     secrets.token_hex(_NONCE_HEX_LENGTH // 2),
        )

    def signing_payload(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "params":    self.params,
            "nonce":     self.nonce,
        }

    def canonical_bytes(self) -> bytes:
        return canonicalize(self.signing_payload())

    def sign(self, key_manager: Ed25519KeyManager) -> "SignedRequest":
        """Add key_manager's signature. Returns self for chaining."""
        self.signatures[key_manager.identity] = key_manager.sign(self.canonical_bytes())
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {**self.signing_payload(), "signatures": dict(self.signatures)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignedRequest":
        return cls(
            operation=  data["operation"],
            params=     dict(data["params"]),
            nonce=      data["nonce"],
            signatures= dict(data.get("signatures", {})),
        )


class SignatureAuthorizer(Authorizer):
    """
    Grants an identity iff the request carries a valid Ed25519 signature
    from it. Identities are public key hex strings.

    Pass a shared ``seen_nonces`` set to reject replays. A seen nonce
    authorizes nothing. The nonce is claimed when a signature first
    authorizes, which also blocks re-entrant replays while the operation
    runs; release() gives it back when the operation fails, so a request
    the engine rejected can be resubmitted.
    """

    def __init__(self, request: SignedRequest, seen_nonces: Optional[Set[str]] = None) -> None:
        self.request = request
        self.seen_nonces = seen_nonces
        self._claimed = False

    def authorize(self, identity: str) -> bool:
        if (self.seen_nonces is not None and not self._claimed
                and self.request.nonce in self.seen_nonces):
            return False

        signature = self.request.signatures.get(identity)
        if signature is None:
            return False
        if not Ed25519KeyManager.verify_detached(
            self.request.canonical_bytes(), signature, identity
        ):
            return False

        if self.seen_nonces is not None and not self._claimed:
            self.seen_nonces.add(self.request.nonce)
            self._claimed = True
        return True

    def release(self) -> None:
        """Return a nonce claimed by this authorizer to the unused pool."""
        if self._claimed:
            self.seen_nonces.discard(self.request.nonce)
            self._claimed = False
