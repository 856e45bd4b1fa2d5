"""XEd25519 signatures made and checked with X25519 (Curve25519) keys."""

from __future__ import annotations

import hashlib
import secrets

_P = 2**255 - 19
_L = 2**252 + 27742317777372353535851937790883648493
_D = -121665 * pow(121666, _P - 2, _P) % _P
_SQRT_M1 = pow(2, (_P - 1) // 4, _P)
_Y_MASK = (1 << 255) - 1

_Point = tuple[int, int, int, int]
_IDENTITY: _Point = (0, 1, 1, 0)

_PERSONALITY = b"xed25519signatur"


def _inv(x: int) -> int:
    return pow(x, _P - 2, _P)


def _add(p1: _Point, p2: _Point) -> _Point:
    x1, y1, z1, t1 = p1
    x2, y2, z2, t2 = p2
    a = (y1 - x1) * (y2 - x2) % _P
    b = (y1 + x1) * (y2 + x2) % _P
    c = t1 * 2 * _D * t2 % _P
    d = z1 * 2 * z2 % _P
    e, f, g, h = b - a, d - c, d + c, b + a
    return (e * f % _P, g * h % _P, f * g % _P, e * h % _P)


def _neg(pt: _Point) -> _Point:
    x, y, z, t = pt
    return (-x % _P, y, z, -t % _P)


def _mul(scalar: int, pt: _Point) -> _Point:
    result = _IDENTITY
    while scalar > 0:
        if scalar & 1:
            result = _add(result, pt)
        pt = _add(pt, pt)
        scalar >>= 1
    return result


def _is_identity(pt: _Point) -> bool:
    x, y, z, _ = pt
    return x % _P == 0 and (y - z) % _P == 0


def _recover_x(y: int, sign: int) -> int | None:
    if y >= _P:
        return None
    x2 = (y * y - 1) * _inv(_D * y * y + 1) % _P
    if x2 == 0:
        return None if sign else 0
    x = pow(x2, (_P + 3) // 8, _P)
    if (x * x - x2) % _P:
        x = x * _SQRT_M1 % _P
    if (x * x - x2) % _P:
        return None
    if x & 1 != sign:
        x = _P - x
    return x


def _decode(enc: bytes) -> _Point | None:
    value = int.from_bytes(enc, "little")
    y = value & _Y_MASK
    x = _recover_x(y, value >> 255)
    if x is None:
        return None
    return (x, y, 1, x * y % _P)


def _encode(pt: _Point) -> bytes:
    x, y, z, _ = pt
    zi = _inv(z)
    x = x * zi % _P
    y = y * zi % _P
    return (y | ((x & 1) << 255)).to_bytes(32, "little")


def _has_small_order(enc: bytes) -> bool:
    y = (int.from_bytes(enc, "little") & _Y_MASK) % _P
    x = _recover_x(y, 0)
    if x is None:
        return False
    return _is_identity(_mul(8, (x, y, 1, x * y % _P)))


_BASE_Y = 4 * _inv(5) % _P
_BASE_X = _recover_x(_BASE_Y, 0)
assert _BASE_X is not None
_BASE: _Point = (_BASE_X, _BASE_Y, 1, _BASE_X * _BASE_Y % _P)


def _clamp(key: bytes) -> int:
    t = bytearray(key)
    t[0] &= 248
    t[31] &= 127
    t[31] |= 64
    return int.from_bytes(t, "little")


def _compute_r(a: bytes, msg: bytes) -> int:
    h = hashlib.blake2b(digest_size=64, person=_PERSONALITY)
    h.update(a)
    h.update(msg)
    h.update(secrets.token_bytes(64))
    return int.from_bytes(h.digest(), "little") % _L


def _hram(r_enc: bytes, a_enc: bytes, msg: bytes) -> int:
    digest = hashlib.sha512(r_enc + a_enc + msg).digest()
    return int.from_bytes(digest, "little") % _L


def _require_len(value: bytes, size: int, what: str) -> bytes:
    data = bytes(value)
    if len(data) != size:
        raise ValueError(f"Invalid {what}: expected {size} bytes, got {len(data)}")
    return data


def sign(curve25519_privkey: bytes, msg: bytes) -> bytes:
    """Sign ``msg`` with an X25519 private key; returns a 64-byte signature R || S."""
    priv = _require_len(curve25519_privkey, 32, "curve25519 private key")
    msg = bytes(msg)

    a_pub = bytearray(_encode(_mul(_clamp(priv), _BASE)))
    negative = a_pub[31] >> 7
    a_pub[31] &= 0x7F

    a = int.from_bytes(priv, "little")
    a_bytes = priv
    if negative:
        a = -a % _L
        a_bytes = a.to_bytes(32, "little")

    r = _compute_r(a_bytes, msg)
    r_enc = _encode(_mul(r, _BASE))
    s = (_hram(r_enc, bytes(a_pub), msg) * a + r) % _L
    return r_enc + s.to_bytes(32, "little")


def _ed25519_verify(sig: bytes, msg: bytes, pk: bytes) -> bool:
    r_enc, s_enc = sig[:32], sig[32:]
    s = int.from_bytes(s_enc, "little")
    if s >= _L or _has_small_order(r_enc):
        return False
    if (int.from_bytes(pk, "little") & _Y_MASK) >= _P or _has_small_order(pk):
        return False
    a_pt = _decode(pk)
    if a_pt is None:
        return False
    h = _hram(r_enc, pk, msg)
    check = _add(_mul(s, _BASE), _neg(_mul(h, a_pt)))
    return _encode(check) == r_enc


def verify(signature: bytes, curve25519_pubkey: bytes, msg: bytes) -> bool:
    """Check an XEd25519 signature against an X25519 public key."""
    sig = _require_len(signature, 64, "signature")
    pk = _require_len(curve25519_pubkey, 32, "curve25519 public key")
    return _ed25519_verify(sig, bytes(msg), pubkey(pk))


def pubkey(curve25519_pubkey: bytes) -> bytes:
    """Convert an X25519 public key to the Ed25519 public key with a zero sign bit."""
    pk = _require_len(curve25519_pubkey, 32, "curve25519 public key")
    u = int.from_bytes(pk, "little") & _Y_MASK
    y = (u - 1) * _inv(u + 1) % _P
    return y.to_bytes(32, "little")