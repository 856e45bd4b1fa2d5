from datetime import timedelta

import pytest

from sessioncfg.group_info import BaseGroupInfo, CommunityInfo, LegacyGroupInfo, NotifyMode

DEFINITELY_REAL_ID = "055000000000000000000000000000000000000000000000000000000000000000"
USERS = [
    "05" + d * 64
    for d in ("0", "1", "2", "3", "4", "5", "6")
]
OG_PUBKEY_HEX = "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


def test_new_legacy_group_defaults():
    c = LegacyGroupInfo(DEFINITELY_REAL_ID)
    assert c.session_id == DEFINITELY_REAL_ID
    assert c.disappearing_timer == timedelta(0)
    assert c.enc_pubkey == b""
    assert c.enc_seckey == b""
    assert c.priority == 0
    assert c.name == ""
    assert c.members == {}
    assert c.joined_at == 0
    assert c.notifications == NotifyMode.DEFAULTED
    assert c.mute_until == 0


@pytest.mark.parametrize("bad", ["0505050505", "02" + "0" * 64, "05" + "g" * 64])
def test_legacy_group_rejects_bad_id(bad):
    with pytest.raises(ValueError):
        LegacyGroupInfo(bad)


def test_insert_and_erase_members():
    c = LegacyGroupInfo(DEFINITELY_REAL_ID)
    assert c.insert(USERS[0], False)
    assert c.insert(USERS[1], True)
    assert c.insert(USERS[2], False)
    assert c.insert(USERS[4], True)
    assert c.insert(USERS[5], False)
    assert not c.insert(USERS[2], False)
    assert c.insert(USERS[2], True)
    assert c.insert(USERS[1], False)
    with pytest.raises(ValueError):
        c.insert("0505050505", False)
    with pytest.raises(ValueError):
        c.insert("02" + "0" * 64, True)
    assert c.erase(USERS[5])
    assert c.erase(USERS[4])
    assert not c.erase(USERS[4])
    assert c.members == {USERS[0]: False, USERS[1]: False, USERS[2]: True}
    assert c.counts() == (1, 2)


def test_members_sorted_by_id():
    c = LegacyGroupInfo(DEFINITELY_REAL_ID)
    for u in reversed(USERS):
        c.insert(u, True)
    assert list(c.members) == USERS


def test_legacy_load_full_record():
    enc_pub = bytes(range(32))
    enc_sec = bytes(range(32, 64))
    info = {
        "n": "Englishmen",
        "k": enc_pub,
        "K": enc_sec,
        "E": 3600,
        "+": 3,
        "j": 1680064059,
        "@": 3,
        "!": 1700000000,
        "m": {bytes.fromhex(USERS[0]), bytes.fromhex(USERS[1])},
        "a": {bytes.fromhex(USERS[2])},
    }
    c = LegacyGroupInfo(DEFINITELY_REAL_ID)
    c.load(info)
    assert c.name == "Englishmen"
    assert c.enc_pubkey == enc_pub
    assert c.enc_seckey == enc_sec
    assert c.disappearing_timer == timedelta(minutes=60)
    assert c.priority == 3
    assert c.joined_at == 1680064059
    assert c.notifications == NotifyMode.MENTIONS_ONLY
    assert c.mute_until == 1700000000
    assert c.members == {USERS[0]: False, USERS[1]: False, USERS[2]: True}


def test_legacy_load_member_in_both_sets_is_not_admin():
    c = LegacyGroupInfo(DEFINITELY_REAL_ID)
    raw = bytes.fromhex(USERS[3])
    c.load({"m": {raw}, "a": {raw}})
    assert c.members == {USERS[3]: False}


def test_legacy_load_skips_invalid_members_and_keeps_name():
    c = LegacyGroupInfo(DEFINITELY_REAL_ID)
    c.name = "kept"
    c.insert(USERS[6], True)
    c.load({"m": {b"\x05" * 10, bytes.fromhex("03" + "1" * 64), 42}, "a": set()})
    assert c.name == "kept"
    assert c.members == {}


def test_legacy_load_partial_keys_cleared_and_bad_timer():
    c = LegacyGroupInfo(DEFINITELY_REAL_ID)
    c.enc_pubkey = bytes(32)
    c.enc_seckey = bytes(32)
    c.disappearing_timer = timedelta(seconds=10)
    c.load({"k": bytes(32), "E": -5})
    assert c.enc_pubkey == b""
    assert c.enc_seckey == b""
    assert c.disappearing_timer == timedelta(0)


@pytest.mark.parametrize(
    "info, expected",
    [
        ({"@": 1}, NotifyMode.ALL),
        ({"@": 2}, NotifyMode.DISABLED),
        ({"@": 4}, NotifyMode.DEFAULTED),
        ({"@": -1}, NotifyMode.DEFAULTED),
        ({}, NotifyMode.DEFAULTED),
    ],
)
def test_base_load_notifications(info, expected):
    b = BaseGroupInfo()
    b.load(info)
    assert b.notifications == expected


def test_base_load_clamps_joined_at_and_ignores_wrong_types():
    b = BaseGroupInfo(priority=5, joined_at=7, mute_until=9)
    b.load({"j": -100, "+": "high", "!": 12})
    assert b.joined_at == 0
    assert b.priority == 0
    assert b.mute_until == 12


def test_community_info_construct():
    og = CommunityInfo("http://Example.ORG:5678", "SudokuRoom", bytes.fromhex(OG_PUBKEY_HEX))
    assert og.base_url == "http://example.org:5678"
    assert og.room == "SudokuRoom"
    assert og.room_norm == "sudokuroom"
    assert len(og.pubkey) == 32
    assert og.pubkey_hex == OG_PUBKEY_HEX
    assert og.priority == 0
    assert og.notifications == NotifyMode.DEFAULTED


def test_community_info_load_replaces_room_case():
    og = CommunityInfo("http://example.org:5678", "sudokuroom", OG_PUBKEY_HEX)
    og.load({"n": "SudokuRoom", "+": 14, "j": 100})
    assert og.room == "SudokuRoom"
    assert og.room_norm == "sudokuroom"
    assert og.priority == 14
    assert og.joined_at == 100


def test_community_info_load_invalid_room_raises():
    og = CommunityInfo("http://example.org", "room", OG_PUBKEY_HEX)
    with pytest.raises(ValueError):
        og.load({"n": "bad room!"})


def test_community_info_equality_includes_settings():
    a = CommunityInfo("https://example.com", "Room", OG_PUBKEY_HEX)
    b = CommunityInfo("https://example.com", "Room", OG_PUBKEY_HEX)
    assert a == b
    b.priority = 2
    assert not (a == b)


def test_legacy_equality():
    a = LegacyGroupInfo(DEFINITELY_REAL_ID)
    b = LegacyGroupInfo(DEFINITELY_REAL_ID)
    assert a == b
    b.insert(USERS[0], True)
    assert not (a == b)