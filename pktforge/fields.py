"""Field mutators applied to header templates.

Each function returns a callable that updates one attribute of a header
template in place.
"""

from __future__ import annotations

from typing import Any, Callable

Mutator = Callable[[Any], None]

DEFAULT_MTU = 2**64 - 1

_U8 = 0xFF
_U16 = 0xFFFF
_U32 = 0xFFFFFFFF


def _check(value: int, limit: int, name: str) -> int:
    if not 0 <= value <= limit:
        raise ValueError(f"{name} {value} out of range 0..{limit}")
    return value


def _setter(attr: str, value: Any) -> Mutator:
    def apply(header: Any) -> None:
        setattr(header, attr, value)

    return apply


def _increment(attr: str, delta: int, mask: int) -> Mutator:
    def apply(header: Any) -> None:
        setattr(header, attr, (getattr(header, attr) + delta) & mask)

    return apply


def src(addr: Any) -> Mutator:
    """Set the source address or port."""
    return _setter("src", addr)


def dst(addr: Any) -> Mutator:
    """Set the destination address or port."""
    return _setter("dst", addr)


def mtu(value: int) -> Mutator:
    """Set the MTU used to segment the payload."""
    return _setter("mtu", _check(value, DEFAULT_MTU, "mtu"))


def checksum(value: int) -> Mutator:
    """Set the header checksum field."""
    return _setter("checksum", _check(value, _U16, "checksum"))


def checksum_verified(verified: bool = True) -> Mutator:
    """Mark the checksum as computed by hardware."""
    return _setter("checksum_verified", bool(verified))


def checksum_passed(valid: bool = True) -> Mutator:
    """Mark the checksum as valid."""
    return _setter("checksum_passed", bool(valid))


def ethertype(value: int) -> Mutator:
    """Set the Ethernet type field."""
    return _setter("ethertype", _check(value, _U16, "ethertype"))


def mbuf_vlan(value: int) -> Mutator:
    """Set the VLAN tag carried in the mbuf header."""
    return _setter("mbuf_vlan", _check(value, _U16, "vlan tag"))


def seq(value: int) -> Mutator:
    """Set the TCP sequence number."""
    return _setter("seq", _check(value, _U32, "sequence number"))


def incr_seq(delta: int) -> Mutator:
    """Advance the sequence number, wrapping modulo 2**32."""
    return _increment("seq", delta, _U32)


def ack(value: int) -> Mutator:
    """Set the TCP ack number."""
    return _setter("ack", _check(value, _U32, "ack number"))


def incr_ack(delta: int) -> Mutator:
    """Advance the ack number, wrapping modulo 2**32."""
    return _increment("ack", delta, _U32)


def flags(value: int) -> Mutator:
    """Set the TCP flags."""
    return _setter("flags", _check(value, _U8, "flags"))


def window(value: int) -> Mutator:
    """Set the TCP window."""
    return _setter("window", _check(value, _U16, "window"))


def incr_window(delta: int) -> Mutator:
    """Grow the window, wrapping modulo 2**16."""
    return _increment("window", delta, _U16)


def urp(value: int) -> Mutator:
    """Set the TCP urgent pointer."""
    return _setter("urgent_pointer", _check(value, _U16, "urgent pointer"))