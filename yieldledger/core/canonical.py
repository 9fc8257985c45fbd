"""
yieldledger: Canonical JSON Encoding — RFC 8785 (JCS)

Bridge message signatures and journal chain hashes are computed over
this encoding and nothing else.

Integers above 2**53 do not survive a JSON number round trip in every
implementation, so amounts and rates are placed in canonical dicts as
decimal strings (see encode_uint / decode_uint).

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib

import jcs

from yieldledger.core.exceptions import ValidationError


def canonicalize(obj: dict) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    Output is deterministic regardless of key insertion order.

    Returns:
        UTF-8 encoded canonical JSON bytes, suitable for signing.
    """
    return jcs.canonicalize(obj)


def canonical_hash(obj: dict) -> str:
    """
    SHA-256 of the RFC 8785 canonical form.

    Returns:
        Lowercase hex-encoded SHA-256 digest (64 characters).
    """
    return hashlib.sha256(canonicalize(obj)).hexdigest()


def encode_uint(value: int) -> str:
    """Render a non-negative int as a base-10 string for the wire."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(
            "Wire integers must be non-negative int",
            {"value": repr(value)},
        )
    return str(value)


def decode_uint(text) -> int:
    """
    Parse a base-10 wire integer.

    Accepts only plain digits: no sign, no whitespace, no leading zeros
    (except "0" itself), so every value has exactly one encoding.
    """
    if not isinstance(text, str) or not text.isdigit() or not text.isascii():
        raise ValidationError("Malformed wire integer", {"value": repr(text)})
    if len(text) > 1 and text[0] == "0":
        raise ValidationError("Wire integer has leading zeros", {"value": text})
    return int(text)
