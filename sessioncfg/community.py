"""Community (open group) URLs, room tokens and server pubkeys."""

from __future__ import annotations

import base64
import string

from .internal import decode_pubkey, make_lc

BASE_URL_MAX_LENGTH = 267
"""len('https://') + 253 (longest DNS name) + len(':XXXXX')."""

ROOM_MAX_LENGTH = 64

_QS_PUBKEY = "?public_key="

FULL_URL_MAX_LENGTH = BASE_URL_MAX_LENGTH + len("/r/") + ROOM_MAX_LENGTH + len(_QS_PUBKEY) + 64 + 1
"""Longest full URL, counting one extra place for a terminator."""

_ROOM_CHARS = frozenset(string.ascii_lowercase + string.digits + "-_")
_B32Z_ALPHABET = "ybndrfg8ejkmcpqxot1uwisza345h769"
_DEFAULT_PORTS = {"http://": ":80", "https://": ":443"}


def _b32z_encode(data: bytes) -> str:
    out = []
    acc = 0
    nbits = 0
    for byte in data:
        acc = (acc << 8) | byte
        nbits += 8
        while nbits >= 5:
            nbits -= 5
            out.append(_B32Z_ALPHABET[(acc >> nbits) & 31])
        acc &= (1 << nbits) - 1
    if nbits:
        out.append(_B32Z_ALPHABET[(acc << (5 - nbits)) & 31])
    return "".join(out)


def _checked_pubkey(pubkey: bytes) -> bytes:
    key = bytes(pubkey)
    if len(key) != 32:
        raise ValueError(f"Invalid pubkey: expected 32 bytes, got {len(key)}")
    return key


def canonical_url(url: str) -> str:
    """Return a base URL in canonical form: lower-cased, no default port, no trailing slash."""
    result = make_lc(url)
    for scheme, default_port in _DEFAULT_PORTS.items():
        if result.startswith(scheme):
            break
    else:
        raise ValueError("Invalid community URL: invalid/missing protocol://")

    host = result[len(scheme):].rstrip("/")
    if not host:
        raise ValueError("Invalid community URL: missing hostname")
    if any(c in host for c in "/?#") or any(c.isspace() for c in host):
        raise ValueError("Invalid community URL: invalid characters in base URL")
    if host.endswith(default_port):
        host = host[: -len(default_port)]
        if not host:
            raise ValueError("Invalid community URL: missing hostname")

    result = scheme + host
    if len(result) > BASE_URL_MAX_LENGTH:
        raise ValueError("Invalid community URL: base URL is too long")
    return result


def canonical_room(room: str) -> str:
    """Return a room token lower-cased; raise ValueError if it is empty, too long or invalid."""
    if not room:
        raise ValueError("Invalid community room: room token is empty")
    if len(room) > ROOM_MAX_LENGTH:
        raise ValueError("Invalid community room: room token is too long")
    result = make_lc(room)
    if not all(c in _ROOM_CHARS for c in result):
        raise ValueError(
            "Invalid community room: room token contains invalid characters "
            "(only a-z, 0-9, -, and _ are permitted)"
        )
    return result


def make_full_url(base_url: str, room: str, pubkey: bytes) -> str:
    """Build ``base_url/room?public_key=<hex>`` from its pieces."""
    return f"{base_url}/{room}{_QS_PUBKEY}{_checked_pubkey(pubkey).hex()}"


def parse_partial_url(url: str) -> tuple[str, str, bytes | None]:
    """Split a room URL that may omit the pubkey into (canonical base, room, pubkey or None).

    The room keeps its case; both old (``/Room``) and new (``/r/Room``) forms are accepted.
    """
    pubkey: bytes | None = None
    qs = url.find(_QS_PUBKEY)
    if qs != -1:
        pubkey = decode_pubkey(url[qs + len(_QS_PUBKEY):])
        url = url[:qs]

    slash = url.rfind("/")
    if slash == -1:
        raise ValueError("Invalid community URL: no room token found")
    base, room = url[:slash], url[slash + 1:]
    if make_lc(base).endswith("/r"):
        base = base[:-2]

    base = canonical_url(base)
    canonical_room(room)
    return base, room, pubkey


def parse_full_url(full_url: str) -> tuple[str, str, bytes]:
    """Split a full room URL into (canonical base, case-preserved room, 32-byte pubkey)."""
    base, room, pubkey = parse_partial_url(full_url)
    if pubkey is None:
        raise ValueError("Invalid community URL: no valid server pubkey")
    return base, room, pubkey


class Community:
    """A community room: canonical base URL, room token (with its local case) and server pubkey."""

    def __init__(
        self,
        base_url: str | None = None,
        room: str | None = None,
        pubkey: bytes | str | None = None,
    ) -> None:
        self._base_url = ""
        self._room = ""
        self._localized_room: str | None = None
        self._pubkey = b""
        if base_url is not None:
            self.set_base_url(base_url)
        if room is not None:
            self.set_room(room)
        if pubkey is not None:
            self.set_pubkey(pubkey)

    @classmethod
    def from_full_url(cls, full_url: str) -> Community:
        """Construct a community from a full URL including its public key."""
        result = cls()
        result.set_full_url(full_url)
        return result

    def set_full_url(self, full_url: str) -> None:
        """Replace base URL, room and pubkey with those parsed from ``full_url``."""
        base, room, pubkey = parse_full_url(full_url)
        self._base_url = base
        self.set_room(room)
        self._pubkey = pubkey

    def set_base_url(self, new_url: str) -> None:
        """Replace the base URL, normalising it."""
        self._base_url = canonical_url(new_url)

    def set_room(self, room: str) -> None:
        """Replace the room token, keeping its case as the localized form."""
        self._room = canonical_room(room)
        self._localized_room = room

    def set_pubkey(self, pubkey: bytes | str) -> None:
        """Replace the server pubkey: 32 raw bytes, or hex/base32z/base64 text."""
        if isinstance(pubkey, str):
            self._pubkey = _checked_pubkey(decode_pubkey(pubkey))
        else:
            self._pubkey = _checked_pubkey(pubkey)

    @property
    def base_url(self) -> str:
        """The canonical base URL."""
        return self._base_url

    @property
    def room(self) -> str:
        """The room token, case-preserved where known."""
        return self._localized_room if self._localized_room is not None else self._room

    @property
    def room_norm(self) -> str:
        """The lower-cased room token."""
        return self._room

    @property
    def pubkey(self) -> bytes:
        """The 32-byte server pubkey."""
        return self._pubkey

    @property
    def pubkey_hex(self) -> str:
        """The server pubkey as 64 hex digits."""
        return self._pubkey.hex()

    @property
    def pubkey_b32z(self) -> str:
        """The server pubkey as 52 base32z characters."""
        return _b32z_encode(self._pubkey)

    @property
    def pubkey_b64(self) -> str:
        """The server pubkey as unpadded base64."""
        return base64.b64encode(self._pubkey).decode("ascii").rstrip("=")

    @property
    def full_url(self) -> str:
        """The full URL of this room, including the pubkey."""
        return make_full_url(self._base_url, self.room, self._pubkey)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Community):
            return NotImplemented
        return (self._base_url, self._room, self.room, self._pubkey) == (
            other._base_url,
            other._room,
            other.room,
            other._pubkey,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(base_url={self._base_url!r}, room={self.room!r}, "
            f"pubkey={self.pubkey_hex!r})"
        )