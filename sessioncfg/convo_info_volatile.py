"""Frequently changing per-conversation state: last-read times and unread flags."""

from __future__ import annotations

import time
from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping, Union

from .community import Community, canonical_room, parse_full_url, parse_partial_url
from .internal import check_session_id, make_lc, maybe_int, session_id_to_bytes, set_flag

PRUNE_LOW = timedelta(days=30)
"""New conversations whose last read is older than this are ignored when stored."""

PRUNE_HIGH = timedelta(days=45)
"""Conversations whose last read is older than this are removed by ``prune_stale``."""


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _normalize_id(value: str | bytes) -> str:
    """Return a session-id-like value as 66 lower-case hex digits, accepting 33 raw bytes."""
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
        if len(raw) != 33:
            raise ValueError(f"Invalid session ID: expected 33 bytes, got {len(raw)}")
        value = raw.hex()
    check_session_id(value)
    return make_lc(value)


def _as_bytes(value: Any) -> bytes | None:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8", "surrogateescape")
    return None


def _load_state(convo: Any, info: Mapping[str, Any]) -> None:
    convo.last_read = maybe_int(info, "r") or 0
    convo.unread = bool(maybe_int(info, "u"))


def _updated_info(convo: Any, existing: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return the info dict that results from storing ``convo`` over ``existing``."""
    info = dict(existing or {})
    current = maybe_int(info, "r")
    if current is not None and convo.last_read < current:
        # Deliberately moving the read time back is always honoured.
        info["r"] = convo.last_read
    elif convo.last_read > _now_ms() - int(PRUNE_LOW.total_seconds() * 1000):
        info["r"] = convo.last_read
    set_flag(info, "u", convo.unread)
    return info


def _is_stale(info: Any, cutoff: int) -> bool:
    return (
        isinstance(info, dict)
        and not maybe_int(info, "u")
        and (maybe_int(info, "r") or 0) < cutoff
    )


@dataclass
class OneToOne:
    """A one-to-one conversation, keyed by the contact's session id (hex)."""

    session_id: str
    last_read: int = 0
    unread: bool = False

    def __post_init__(self) -> None:
        self.session_id = _normalize_id(self.session_id)


@dataclass
class LegacyGroup:
    """A legacy group conversation, keyed by its session-id-like group id (hex)."""

    id: str
    last_read: int = 0
    unread: bool = False

    def __post_init__(self) -> None:
        self.id = _normalize_id(self.id)


class ConvoCommunity(Community):
    """A community conversation with its last-read time and unread flag."""

    def __init__(
        self,
        base_url: str | None = None,
        room: str | None = None,
        pubkey: bytes | str | None = None,
    ) -> None:
        super().__init__(base_url, room, pubkey)
        self.last_read = 0
        self.unread = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConvoCommunity):
            return NotImplemented
        return (
            Community.__eq__(self, other)
            and self.last_read == other.last_read
            and self.unread == other.unread
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"ConvoCommunity(base_url={self.base_url!r}, room={self.room!r}, "
            f"last_read={self.last_read}, unread={self.unread})"
        )


AnyConvo = Union[OneToOne, ConvoCommunity, LegacyGroup]


class ConvoInfoVolatile:
    """Conversation read state kept in a nested config dict.

    ``data["1"]`` maps 33-byte contact ids to info dicts, ``data["C"]`` maps 33-byte legacy
    group ids to info dicts, and ``data["o"]`` maps canonical community base URLs to
    ``{"#": pubkey, "R": {room: info}}``.  Each info dict holds ``r`` (last read, unix ms) and
    ``u`` (1 when explicitly marked unread).
    """

    PRUNE_LOW = PRUNE_LOW
    PRUNE_HIGH = PRUNE_HIGH

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}

    # -- pruning -----------------------------------------------------------------

    def prune_stale(self, prune: timedelta = PRUNE_HIGH) -> None:
        """Remove conversations read longer than ``prune`` ago that are not marked unread."""
        cutoff = _now_ms() - int(prune.total_seconds() * 1000)
        for section in ("1", "C"):
            group = self.data.get(section)
            if not isinstance(group, dict):
                continue
            for key in [k for k, info in group.items() if _is_stale(info, cutoff)]:
                del group[key]
            if not group:
                del self.data[section]

        servers = self.data.get("o")
        if not isinstance(servers, dict):
            return
        for base_url in list(servers):
            server = servers[base_url]
            if not isinstance(server, dict):
                continue
            rooms = server.get("R")
            if not isinstance(rooms, dict):
                continue
            for room in [r for r, info in rooms.items() if _is_stale(info, cutoff)]:
                del rooms[room]
            if not rooms:
                del servers[base_url]
        if not servers:
            del self.data["o"]

    # -- lookups -----------------------------------------------------------------

    def _keyed_info(self, section: str, key: bytes) -> dict | None:
        group = self.data.get(section)
        if not isinstance(group, dict):
            return None
        info = group.get(key)
        return info if isinstance(info, dict) else None

    def _community_record(self, comm: Community) -> dict | None:
        servers = self.data.get("o")
        if not isinstance(servers, dict):
            return None
        server = servers.get(comm.base_url)
        if not isinstance(server, dict):
            return None
        rooms = server.get("R")
        if not isinstance(rooms, dict):
            return None
        info = rooms.get(comm.room_norm)
        return info if isinstance(info, dict) else None

    def _stored_pubkey(self, base_url: str) -> bytes | None:
        servers = self.data.get("o")
        server = servers.get(base_url) if isinstance(servers, dict) else None
        if not isinstance(server, dict):
            return None
        pubkey = _as_bytes(server.get("#"))
        return pubkey if pubkey is not None and len(pubkey) == 32 else None

    def get_1to1(self, session_id: str | bytes) -> OneToOne | None:
        """Look up a one-to-one conversation; raise ValueError if the id is invalid."""
        convo = OneToOne(session_id)
        info = self._keyed_info("1", session_id_to_bytes(convo.session_id))
        if info is None:
            return None
        _load_state(convo, info)
        return convo

    def get_community(self, base_url: str, room: str | None = None) -> ConvoCommunity | None:
        """Look up a community by base URL and room (case-insensitive), or by a partial URL."""
        if room is None:
            base_url, room, _ = parse_partial_url(base_url)
        convo = ConvoCommunity(base_url, canonical_room(room))
        info = self._community_record(convo)
        if info is None:
            return None
        _load_state(convo, info)
        pubkey = self._stored_pubkey(convo.base_url)
        if pubkey is not None:
            convo.set_pubkey(pubkey)
        return convo

    def get_legacy_group(self, pubkey_hex: str | bytes) -> LegacyGroup | None:
        """Look up a legacy group conversation; raise ValueError if the id is invalid."""
        convo = LegacyGroup(pubkey_hex)
        info = self._keyed_info("C", session_id_to_bytes(convo.id))
        if info is None:
            return None
        _load_state(convo, info)
        return convo

    def get_or_construct_1to1(self, session_id: str | bytes) -> OneToOne:
        """Return the stored conversation, or a blank one for this session id."""
        found = self.get_1to1(session_id)
        return found if found is not None else OneToOne(session_id)

    def get_or_construct_legacy_group(self, pubkey_hex: str | bytes) -> LegacyGroup:
        """Return the stored legacy group conversation, or a blank one for this id."""
        found = self.get_legacy_group(pubkey_hex)
        return found if found is not None else LegacyGroup(pubkey_hex)

    def get_or_construct_community(
        self,
        base_url: str,
        room: str | None = None,
        pubkey: bytes | str | None = None,
    ) -> ConvoCommunity:
        """Like get_community, but builds a new record when absent; the given pubkey is kept.

        With only one argument it is taken as a full URL including the pubkey.
        """
        if room is None:
            if pubkey is not None:
                raise TypeError("a room is required when a pubkey is given")
            base_url, room, pubkey = parse_full_url(base_url)
        elif pubkey is None:
            raise TypeError("a pubkey is required when a room is given")
        convo = ConvoCommunity(base_url, room, pubkey)
        info = self._community_record(convo)
        if info is not None:
            _load_state(convo, info)
        return convo

    # -- updates -----------------------------------------------------------------

    def _set_keyed(self, section: str, key: bytes, convo: Any) -> None:
        info = _updated_info(convo, self._keyed_info(section, key))
        if info:
            group = self.data.get(section)
            if not isinstance(group, dict):
                group = self.data[section] = {}
            group[key] = info
        else:
            self._erase_keyed(section, key)

    def set(self, convo: AnyConvo) -> None:
        """Insert or replace the stored state of a conversation."""
        if isinstance(convo, OneToOne):
            self._set_keyed("1", session_id_to_bytes(convo.session_id), convo)
        elif isinstance(convo, LegacyGroup):
            self._set_keyed("C", session_id_to_bytes(convo.id), convo)
        elif isinstance(convo, ConvoCommunity):
            self._set_community(convo)
        else:
            raise TypeError(f"cannot store {type(convo).__name__}")

    def _set_community(self, convo: ConvoCommunity) -> None:
        info = _updated_info(convo, self._community_record(convo))
        if not info:
            self._erase_community(convo)
            return
        servers = self.data.get("o")
        if not isinstance(servers, dict):
            servers = self.data["o"] = {}
        server = servers.get(convo.base_url)
        if not isinstance(server, dict):
            server = servers[convo.base_url] = {}
        server["#"] = convo.pubkey
        rooms = server.get("R")
        if not isinstance(rooms, dict):
            rooms = server["R"] = {}
        rooms[convo.room_norm] = info

    def _erase_keyed(self, section: str, key: bytes) -> bool:
        group = self.data.get(section)
        if not isinstance(group, dict) or key not in group:
            return False
        del group[key]
        if not group:
            del self.data[section]
        return True

    def _erase_community(self, convo: Community) -> bool:
        servers = self.data.get("o")
        if not isinstance(servers, dict):
            return False
        server = servers.get(convo.base_url)
        if not isinstance(server, dict):
            return False
        rooms = server.get("R")
        if not isinstance(rooms, dict) or convo.room_norm not in rooms:
            return False
        del rooms[convo.room_norm]
        # Without rooms the server entry would linger only because of its pubkey.
        if not rooms:
            del servers[convo.base_url]
            if not servers:
                del self.data["o"]
        return True

    def erase(self, convo: AnyConvo) -> bool:
        """Remove the stored state of a conversation; False if there was none."""
        if isinstance(convo, OneToOne):
            return self._erase_keyed("1", session_id_to_bytes(convo.session_id))
        if isinstance(convo, LegacyGroup):
            return self._erase_keyed("C", session_id_to_bytes(convo.id))
        if isinstance(convo, ConvoCommunity):
            return self._erase_community(convo)
        raise TypeError(f"cannot erase {type(convo).__name__}")

    def erase_1to1(self, session_id: str | bytes) -> bool:
        """Remove a one-to-one conversation; False if not present."""
        return self.erase(OneToOne(session_id))

    def erase_community(self, base_url: str, room: str) -> bool:
        """Remove a community conversation; False if not present."""
        return self.erase(ConvoCommunity(base_url, room))

    def erase_legacy_group(self, pubkey_hex: str | bytes) -> bool:
        """Remove a legacy group conversation; False if not present."""
        return self.erase(LegacyGroup(pubkey_hex))

    # -- sizes and iteration -------------------------------------------------------

    def _size_keyed(self, section: str) -> int:
        group = self.data.get(section)
        return len(group) if isinstance(group, dict) else 0

    def size_1to1(self) -> int:
        """Number of one-to-one conversations."""
        return self._size_keyed("1")

    def size_communities(self) -> int:
        """Number of community conversations on servers with a known pubkey."""
        servers = self.data.get("o")
        if not isinstance(servers, dict):
            return 0
        count = 0
        for server in servers.values():
            if not isinstance(server, dict) or _as_bytes(server.get("#")) is None:
                continue
            rooms = server.get("R")
            if isinstance(rooms, dict):
                count += len(rooms)
        return count

    def size_legacy_groups(self) -> int:
        """Number of legacy group conversations."""
        return self._size_keyed("C")

    def __len__(self) -> int:
        return self.size_1to1() + self.size_communities() + self.size_legacy_groups()

    def __iter__(self) -> Iterator[AnyConvo]:
        """All conversations: one-to-one, then communities, then legacy groups, each sorted."""
        yield from self.one_to_ones()
        yield from self.communities()
        yield from self.legacy_groups()

    def _keyed_entries(self, section: str) -> Iterator[tuple[str, dict]]:
        group = self.data.get(section)
        if not isinstance(group, dict):
            return
        for key in sorted(k for k in group if isinstance(k, (bytes, bytearray))):
            info = group[key]
            if len(key) == 33 and key[0] == 0x05 and isinstance(info, dict):
                yield bytes(key).hex(), info

    def one_to_ones(self) -> Iterator[OneToOne]:
        """Stored one-to-one conversations, sorted by session id."""
        for sid, info in self._keyed_entries("1"):
            convo = OneToOne(sid)
            _load_state(convo, info)
            yield convo

    def legacy_groups(self) -> Iterator[LegacyGroup]:
        """Stored legacy group conversations, sorted by id."""
        for gid, info in self._keyed_entries("C"):
            convo = LegacyGroup(gid)
            _load_state(convo, info)
            yield convo

    def communities(self) -> Iterator[ConvoCommunity]:
        """Stored community conversations, sorted by base URL then room; invalid ones skipped."""
        servers = self.data.get("o")
        if not isinstance(servers, dict):
            return
        for base_url in sorted(servers):
            server = servers[base_url]
            if not isinstance(server, dict):
                continue
            pubkey = _as_bytes(server.get("#"))
            rooms = server.get("R")
            if pubkey is None or not isinstance(rooms, dict):
                continue
            for room in sorted(rooms):
                info = rooms[room]
                if not isinstance(info, dict):
                    continue
                convo = ConvoCommunity()
                try:
                    convo.set_base_url(base_url)
                    convo.set_room(room)
                    convo.set_pubkey(pubkey)
                except ValueError:
                    continue
                _load_state(convo, info)
                yield convo