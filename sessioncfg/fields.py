"""Basic identity fields."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionID:
    """A network id byte together with a 32-byte public key."""

    netid: int
    pubkey: bytes

    def __post_init__(self) -> None:
        if not 0 <= self.netid <= 0xFF:
            raise ValueError(f"Invalid network id: {self.netid}")
        key = bytes(self.pubkey)
        if len(key) != 32:
            raise ValueError(f"Invalid pubkey: expected 32 bytes, got {len(key)}")
        object.__setattr__(self, "pubkey", key)

    def hex(self) -> str:
        """Return the network id character followed by the hex-encoded pubkey."""
        return chr(self.netid) + self.pubkey.hex()