import pytest

from sessioncfg.fields import SessionID


def test_hex_starts_with_netid_char_then_hex_pubkey():
    key = bytes(range(32))
    sid = SessionID(netid=5, pubkey=key)
    result = sid.hex()
    assert result[0] == "\x05"
    assert result[1:] == key.hex()
    assert len(result) == 65


def test_pubkey_is_stored_as_bytes():
    sid = SessionID(netid=5, pubkey=bytearray(32))
    assert sid.pubkey == bytes(32)


def test_wrong_pubkey_length_rejected():
    with pytest.raises(ValueError):
        SessionID(netid=5, pubkey=bytes(31))


def test_netid_out_of_range_rejected():
    with pytest.raises(ValueError):
        SessionID(netid=256, pubkey=bytes(32))


def test_equality_of_identical_ids():
    first = SessionID(5, bytes(32))
    second = SessionID(5, bytes(32))
    assert first == second
    assert first.hex() == "\x05" + "0" * 64
    assert second.hex() == first.hex()