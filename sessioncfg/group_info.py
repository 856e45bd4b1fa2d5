"""Group records kept in the user's group list: legacy groups and communities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import IntEnum
from typing import Any, ClassVar, Mapping

from .community import Community
from .internal import check_session_id, maybe_bytes, maybe_int, maybe_set, maybe_string


class NotifyMode(IntEnum):
    """When the user wants to be notified about a conversation."""

    DEFAULTED = 0
    ALL = 1
    DISABLED = 2
    MENTIONS_ONLY = 3


def _member_ids(values: Any) -> list[str]:
    """Return hex session ids for the 33-byte, 0x05-prefixed entries of a stored set."""
    found = []
    for value in values or ():
        if isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str):
            raw = value.encode("utf-8", "surrogateescape")
        else:
            continue
        if len(raw) == 33 and raw[0] == 0x05:
            found.append(raw.hex())
    return sorted(found)


@dataclass
class BaseGroupInfo:
    """Fields shared by every kind of group."""

    priority: int = 0
    joined_at: int = 0
    notifications: NotifyMode = NotifyMode.DEFAULTED
    mute_until: int = 0

    def load(self, info_dict: Mapping[str, Any]) -> None:
        """Fill the common fields from a stored info dict."""
        self.priority = maybe_int(info_dict, "+") or 0
        self.joined_at = max(0, maybe_int(info_dict, "j") or 0)
        notify = maybe_int(info_dict, "@") or 0
        if 0 <= notify <= 3:
            self.notifications = NotifyMode(notify)
        else:
            self.notifications = NotifyMode.DEFAULTED
        self.mute_until = maybe_int(info_dict, "!") or 0

    def _base_fields(self) -> tuple[int, int, NotifyMode, int]:
        return (self.priority, self.joined_at, self.notifications, self.mute_until)


class LegacyGroupInfo(BaseGroupInfo):
    """A legacy (closed) group with its name, keys, timer and member list."""

    NAME_MAX_LENGTH: ClassVar[int] = 100

    def __init__(self, session_id: str) -> None:
        check_session_id(session_id)
        super().__init__()
        self.session_id = session_id
        self.name = ""
        self.enc_pubkey = b""
        self.enc_seckey = b""
        self.disappearing_timer = timedelta(0)
        self._members: dict[str, bool] = {}

    @property
    def members(self) -> dict[str, bool]:
        """Hex session id to admin flag, sorted by session id."""
        return dict(sorted(self._members.items()))

    def counts(self) -> tuple[int, int]:
        """Return (number of admins, number of regular members)."""
        admins = sum(1 for admin in self._members.values() if admin)
        return admins, len(self._members) - admins

    def insert(self, session_id: str, admin: bool) -> bool:
        """Add a member or change its admin status; False if nothing changed."""
        check_session_id(session_id)
        admin = bool(admin)
        if self._members.get(session_id) is admin:
            return False
        self._members[session_id] = admin
        return True

    def erase(self, session_id: str) -> bool:
        """Remove a member; False if it was not present."""
        return self._members.pop(session_id, None) is not None

    def load(self, info_dict: Mapping[str, Any]) -> None:
        """Fill this group from a stored info dict."""
        super().load(info_dict)

        name = maybe_string(info_dict, "n")
        if name is not None:
            self.name = name

        enc_pub = maybe_bytes(info_dict, "k")
        enc_sec = maybe_bytes(info_dict, "K")
        if enc_pub is not None and enc_sec is not None and len(enc_pub) == 32 and len(enc_sec) == 32:
            self.enc_pubkey = enc_pub
            self.enc_seckey = enc_sec
        else:
            self.enc_pubkey = b""
            self.enc_seckey = b""

        seconds = maybe_int(info_dict, "E") or 0
        self.disappearing_timer = timedelta(seconds=seconds) if seconds > 0 else timedelta(0)

        self._members = {}
        for sid in _member_ids(maybe_set(info_dict, "m")):
            self._members.setdefault(sid, False)
        for sid in _member_ids(maybe_set(info_dict, "a")):
            self._members.setdefault(sid, True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LegacyGroupInfo):
            return NotImplemented
        return (
            self._base_fields() == other._base_fields()
            and self.session_id == other.session_id
            and self.name == other.name
            and self.enc_pubkey == other.enc_pubkey
            and self.enc_seckey == other.enc_seckey
            and self.disappearing_timer == other.disappearing_timer
            and self._members == other._members
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"LegacyGroupInfo(session_id={self.session_id!r}, name={self.name!r}, "
            f"priority={self.priority}, members={len(self._members)})"
        )


class CommunityInfo(BaseGroupInfo, Community):
    """A community the user has joined, with its group settings."""

    def __init__(
        self,
        base_url: str | None = None,
        room: str | None = None,
        pubkey: bytes | str | None = None,
    ) -> None:
        BaseGroupInfo.__init__(self)
        Community.__init__(self, base_url, room, pubkey)

    def load(self, info_dict: Mapping[str, Any]) -> None:
        """Fill the settings and, if stored, the case-preserved room name."""
        BaseGroupInfo.load(self, info_dict)
        name = maybe_string(info_dict, "n")
        if name is not None:
            self.set_room(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommunityInfo):
            return NotImplemented
        return self._base_fields() == other._base_fields() and Community.__eq__(self, other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"CommunityInfo(base_url={self.base_url!r}, room={self.room!r}, "
            f"pubkey={self.pubkey_hex!r}, priority={self.priority})"
        )