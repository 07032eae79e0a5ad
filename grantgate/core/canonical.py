"""
Canonical JSON for hashing and signing.

Signed requests and journal entry hashes are computed over RFC 8785 (JCS)
bytes of the value passed through ``encode_exact_ints()`` first.

RFC 8785 serializes numbers as IEEE-754 doubles, so an int beyond 2**53
would be rounded before hashing and two different u128 amounts could share
a digest. Such ints are therefore hashed as their decimal string. Ints
within the safe range stay numbers, so small payloads canonicalize exactly
as plain JCS would.

    {"amount": 5}         -> {"amount":5}
    {"amount": 10**21}    -> {"amount":"1000000000000000000000"}

An out-of-range int and the string of its digits hash alike; record
readers parse amounts with int(), so both decode to the same value.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib
from typing import Any

import jcs

# Largest magnitude an IEEE-754 double holds without rounding
MAX_SAFE_INTEGER = 2 ** 53 - 1


def encode_exact_ints(value: Any) -> Any:
    """Copy of ``value`` with every out-of-range int replaced by its decimal string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
            return value
        return str(value)
    if isinstance(value, dict):
        return {k: encode_exact_ints(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_exact_ints(v) for v in value]
    return value


def canonicalize(obj: Any) -> bytes:
    """
    Encode a JSON-compatible value to canonical bytes.

    Output is deterministic regardless of key insertion order and exact
    for ints of any size.
    """
    return jcs.canonicalize(encode_exact_ints(obj))


def canonical_hash(obj: Any) -> str:
    """Lowercase hex SHA-256 of ``canonicalize(obj)``."""
    return hashlib.sha256(canonicalize(obj)).hexdigest()
