"""The user's own profile: name, picture and note-to-self settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from .internal import (
    maybe_bytes,
    maybe_int,
    maybe_string,
    set_nonempty_str,
    set_nonzero_int,
    set_pair_if,
    set_positive_int,
)


@dataclass
class ProfilePic:
    """A profile picture URL with its 32-byte decryption key."""

    url: str = ""
    key: bytes = b""

    def __bool__(self) -> bool:
        return bool(self.url) and len(self.key) == 32


@dataclass
class UserProfile:
    """User profile settings stored in a config dict."""

    data: dict[str, Any] = field(default_factory=dict)

    def __init__(self) -> None:
        self.data = {}

    @property
    def name(self) -> str | None:
        """The profile name, or None if unset."""
        return maybe_string(self.data, "n") or None

    @name.setter
    def name(self, new_name: str) -> None:
        set_nonempty_str(self.data, "n", new_name or "")

    @property
    def profile_pic(self) -> ProfilePic:
        """The profile picture; fields are empty when not (fully) set."""
        pic = ProfilePic()
        url = maybe_string(self.data, "p")
        if url:
            pic.url = url
        key = maybe_bytes(self.data, "q")
        if key is not None and len(key) == 32:
            pic.key = key
        return pic

    @profile_pic.setter
    def profile_pic(self, pic: ProfilePic) -> None:
        self.set_profile_pic(pic.url, pic.key)

    def set_profile_pic(self, url: str, key: bytes) -> None:
        """Store the URL and key together, or clear both if either is unusable."""
        key = bytes(key)
        set_pair_if(bool(url) and len(key) == 32, self.data, "p", url, "q", key)

    @property
    def nts_priority(self) -> int:
        """Note-to-self priority; 0 when unset."""
        return maybe_int(self.data, "+") or 0

    @nts_priority.setter
    def nts_priority(self, priority: int) -> None:
        set_nonzero_int(self.data, "+", priority)

    @property
    def nts_expiry(self) -> timedelta | None:
        """Note-to-self disappearing message timer, or None if disabled."""
        expiry = maybe_int(self.data, "e")
        if expiry is not None and expiry > 0:
            return timedelta(seconds=expiry)
        return None

    @nts_expiry.setter
    def nts_expiry(self, expiry: timedelta | None) -> None:
        seconds = int(expiry.total_seconds()) if expiry is not None else 0
        set_positive_int(self.data, "e", seconds)

    @property
    def blinded_msgreqs(self) -> bool | None:
        """Whether blinded message requests are allowed; None means not set."""
        value = maybe_int(self.data, "M")
        if value is None:
            return None
        return bool(value)

    @blinded_msgreqs.setter
    def blinded_msgreqs(self, value: bool | None) -> None:
        if value is None:
            self.data.pop("M", None)
        else:
            self.data["M"] = int(bool(value))