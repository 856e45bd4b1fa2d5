# sessioncfg

Pure-Python config records for the Session messenger: the user profile,
legacy group and community records, community (open group) URLs, volatile
per-conversation read state, and XEd25519 signatures made with X25519 keys.
It has no dependencies beyond the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Communities

`sessioncfg.community` parses and canonicalizes community URLs. The old form
(`https://host/Room?public_key=...`) and the new form
(`https://host/r/Room?public_key=...`) are both accepted; the public key may be
hex, base64 (padded or not) or base32z. Base URLs are lower-cased, lose a
default port (`:80` for http, `:443` for https) and any trailing slash. Room
tokens keep their case; `canonical_room` lower-cases them and only allows
`a-z`, `0-9`, `-` and `_`, up to 64 characters. Invalid input raises
`ValueError`.

```python
from sessioncfg.community import Community, canonical_room, parse_full_url

base, room, pubkey = parse_full_url(
    "HTTPS://EXAMPLE.COM:443/r/SomeRoom?public_key="
    "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
)
assert base == "https://example.com"
assert room == "SomeRoom"
assert canonical_room(room) == "someroom"

comm = Community.from_full_url("http://example.org:5678/r/SudokuRoom?public_key=" + "00" * 32)
print(comm.base_url, comm.room, comm.room_norm, comm.pubkey_hex)
print(comm.pubkey_b32z, comm.pubkey_b64)
print(comm.full_url)  # http://example.org:5678/SudokuRoom?public_key=00...
```

`parse_partial_url` does the same as `parse_full_url` but lets the
`?public_key=` part be left out (the pubkey then comes back as `None`), and
`make_full_url(base_url, room, pubkey)` builds a URL from its pieces.
`Community` objects can be changed with `set_full_url`, `set_base_url`,
`set_room` and `set_pubkey` (32 raw bytes, or hex/base32z/base64 text).

## Group records

`sessioncfg.group_info` has the records for the groups a user is in:

- `LegacyGroupInfo(session_id)` — a legacy (closed) group with `name`,
  `enc_pubkey`, `enc_seckey`, `disappearing_timer` and its members. The id must
  be 66 hex digits starting with `05`.
- `CommunityInfo(base_url, room, pubkey)` — a joined community; a `Community`
  with group settings.

Both carry `priority`, `joined_at`, `notifications` (a `NotifyMode`) and
`mute_until`, and both can be filled from a stored info dict with `load`.

```python
from sessioncfg.group_info import LegacyGroupInfo, NotifyMode

lg = LegacyGroupInfo("05" + "50" + "00" * 31)
lg.name = "Englishmen"
lg.notifications = NotifyMode.MENTIONS_ONLY
lg.insert("05" + "11" * 32, True)   # admin; returns True
lg.insert("05" + "22" * 32, False)  # member
lg.insert("05" + "22" * 32, False)  # no change; returns False
print(lg.members)   # {hex session id: is admin}, sorted
print(lg.counts())  # (admins, regular members) -> (1, 1)
lg.erase("05" + "22" * 32)
```

`load` reads the keys `+` (priority), `j` (joined at), `@` (notify mode),
`!` (mute until), and for legacy groups `n` (name), `k`/`K` (32-byte keys),
`E` (timer seconds), `m` (member ids) and `a` (admin ids, 33 raw bytes each).

## User profile

`sessioncfg.user_profile.UserProfile` keeps its values in the `data` dict:

```python
from sessioncfg.user_profile import UserProfile

profile = UserProfile()
profile.name = "Kallie"
profile.set_profile_pic("http://example.com/pic.png", bytes(32))
print(profile.profile_pic)  # ProfilePic(url=..., key=...)
profile.nts_priority = 2
profile.blinded_msgreqs = True
print(profile.data)
```

Empty names, zero priorities and non-positive expiries remove their keys; a
profile picture is only stored when both a URL and a 32-byte key are given.

## Volatile conversation info

`sessioncfg.convo_info_volatile.ConvoInfoVolatile` tracks the last-read time
(unix milliseconds) and unread flag of one-to-one chats (`OneToOne`),
communities (`ConvoCommunity`) and legacy groups (`LegacyGroup`).

```python
from sessioncfg.convo_info_volatile import ConvoInfoVolatile

convos = ConvoInfoVolatile()
c = convos.get_or_construct_1to1("05" + "ab" * 32)
c.unread = True
convos.set(c)
print(convos.size_1to1(), len(convos))
for convo in convos:
    print(convo)
convos.prune_stale()
```

Storing a conversation whose last read is older than `PRUNE_LOW` (30 days)
keeps the old read time, unless it moves an existing one back. `prune_stale`
removes conversations read longer ago than `PRUNE_HIGH` (45 days) by default
that are not marked unread. Iteration yields one-to-one chats, then
communities, then legacy groups, each in sorted order.

## XEd25519

`sessioncfg.xed25519` signs with an X25519 private key and checks such
signatures against the X25519 public key:

```python
from sessioncfg import xed25519

signature = xed25519.sign(x25519_private_key, b"hello")
assert xed25519.verify(signature, x25519_public_key, b"hello")
ed25519_public_key = xed25519.pubkey(x25519_public_key)
```

Here `x25519_private_key` and `x25519_public_key` stand for your own 32-byte
keys. Signatures are randomized, so signing twice gives different bytes.

## Other helpers

- `sessioncfg.internal` — `check_session_id`, `session_id_to_bytes`,
  `check_encoded_pubkey`, `decode_pubkey`, `make_lc`, and small helpers for
  reading (`maybe_int`, `maybe_string`, `maybe_bytes`, `maybe_set`) and writing
  (`set_flag`, `set_positive_int`, `set_nonzero_int`, `set_nonempty_str`,
  `set_pair_if`) config dicts.
- `sessioncfg.fields.SessionID(netid, pubkey)` — its `hex()` returns the
  character whose code is `netid` followed by the 64 hex digits of the pubkey.

## What this package does not do

- There is no container for a user's group list: `LegacyGroupInfo` and
  `CommunityInfo` records can be built and loaded from info dicts, but nothing
  here stores, counts or iterates over a set of them.
- All state lives in plain in-memory dicts. Nothing is encrypted, serialized,
  dumped to disk, pushed to or merged from a server.
- There is no command-line program.