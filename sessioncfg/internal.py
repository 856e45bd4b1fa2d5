"""Validation, encoding and config-dict helpers shared by the config types."""

from __future__ import annotations

import string
from collections.abc import MutableMapping
from typing import Any, Mapping

_HEX_CHARS = frozenset(string.hexdigits)
_B64_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"
_B64_VALUES = {c: i for i, c in enumerate(_B64_ALPHABET)} | {"-": 62, "_": 63}
_B32Z_ALPHABET = "ybndrfg8ejkmcpqxot1uwisza345h769"
_B32Z_VALUES = {c: i for i, c in enumerate(_B32Z_ALPHABET)}
_LOWER_TABLE = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

_BAD_PUBKEY = "Invalid encoded pubkey: expected hex, base32z or base64"


def _is_hex(s: str) -> bool:
    return len(s) % 2 == 0 and all(c in _HEX_CHARS for c in s)


def _strip_b64_padding(s: str) -> str:
    if s and len(s) % 4 == 0 and s.endswith("="):
        s = s[:-1]
        if s.endswith("="):
            s = s[:-1]
    return s


def _is_base64(s: str) -> bool:
    body = _strip_b64_padding(s)
    return len(body) % 4 != 1 and all(c in _B64_VALUES for c in body)


def _is_base32z(s: str) -> bool:
    return len(s) % 8 not in (1, 3, 6) and all(c in _B32Z_VALUES for c in s)


def _decode_bits(text: str, values: Mapping[str, int], width: int) -> bytes:
    out = bytearray()
    acc = 0
    nbits = 0
    for c in text:
        acc = (acc << width) | values[c]
        nbits += width
        if nbits >= 8:
            nbits -= 8
            out.append((acc >> nbits) & 0xFF)
            acc &= (1 << nbits) - 1
    return bytes(out)


def _is_b64_pubkey(pk: str) -> bool:
    return (len(pk) == 43 or (len(pk) == 44 and pk.endswith("="))) and _is_base64(pk)


def check_session_id(session_id: str) -> None:
    """Raise ValueError unless ``session_id`` is 66 hex digits starting with 05."""
    if not (len(session_id) == 66 and _is_hex(session_id) and session_id.startswith("05")):
        raise ValueError(
            "Invalid session ID: expected 66 hex digits starting with 05; got " + session_id
        )


def session_id_to_bytes(session_id: str) -> bytes:
    """Validate a session ID and return its 33 raw bytes."""
    check_session_id(session_id)
    return bytes.fromhex(session_id)


def check_encoded_pubkey(pk: str) -> None:
    """Raise ValueError unless ``pk`` is a 32-byte key in hex, base64 or base32z."""
    if not (
        (len(pk) == 64 and _is_hex(pk))
        or _is_b64_pubkey(pk)
        or (len(pk) == 52 and _is_base32z(pk))
    ):
        raise ValueError(_BAD_PUBKEY)


def decode_pubkey(pk: str) -> bytes:
    """Decode a pubkey given as hex, base64 (padded or not) or base32z."""
    if len(pk) == 64 and _is_hex(pk):
        return bytes.fromhex(pk)
    if _is_b64_pubkey(pk):
        return _decode_bits(pk.rstrip("="), _B64_VALUES, 6)
    if len(pk) == 52 and _is_base32z(pk):
        return _decode_bits(pk, _B32Z_VALUES, 5)
    raise ValueError(_BAD_PUBKEY)


def make_lc(s: str) -> str:
    """Return ``s`` with ASCII capitals lower-cased; other characters are untouched."""
    return s.translate(_LOWER_TABLE)


def maybe_int(d: Mapping[str, Any], key: str) -> int | None:
    """Return the integer stored under ``key``, or None if absent or not an integer."""
    value = d.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def maybe_string(d: Mapping[str, Any], key: str) -> str | None:
    """Return the string stored under ``key``, or None if absent or not a string."""
    value = d.get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", "surrogateescape")
    return None


def maybe_bytes(d: Mapping[str, Any], key: str) -> bytes | None:
    """Return the string stored under ``key`` as bytes, or None if absent or not a string."""
    value = d.get(key)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8", "surrogateescape")
    return None


def maybe_set(d: Mapping[str, Any], key: str) -> set | frozenset | None:
    """Return the set stored under ``key``, or None if absent or not a set."""
    value = d.get(key)
    if isinstance(value, (set, frozenset)):
        return value
    return None


def set_flag(d: MutableMapping[str, Any], key: str, val: bool) -> None:
    """Store 1 when ``val`` is true, otherwise remove the key."""
    if val:
        d[key] = 1
    else:
        d.pop(key, None)


def set_positive_int(d: MutableMapping[str, Any], key: str, val: int) -> None:
    """Store ``val`` if positive, otherwise remove the key."""
    if val > 0:
        d[key] = val
    else:
        d.pop(key, None)


def set_nonzero_int(d: MutableMapping[str, Any], key: str, val: int) -> None:
    """Store ``val`` if non-zero, otherwise remove the key."""
    if val != 0:
        d[key] = val
    else:
        d.pop(key, None)


def set_nonempty_str(d: MutableMapping[str, Any], key: str, val: str | bytes) -> None:
    """Store ``val`` if non-empty, otherwise remove the key."""
    if val:
        d[key] = val
    else:
        d.pop(key, None)


def set_pair_if(
    condition: bool,
    d: MutableMapping[str, Any],
    key1: str,
    val1: Any,
    key2: str,
    val2: Any,
) -> None:
    """Store both values if ``condition`` holds, otherwise remove both keys."""
    if condition:
        d[key1] = val1
        d[key2] = val2
    else:
        d.pop(key1, None)
        d.pop(key2, None)