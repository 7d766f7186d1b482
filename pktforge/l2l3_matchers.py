"""Matchers that check link- and network-layer headers inside a packet buffer.

Each matcher holds a header template and the byte offset at which that
header starts in the packet. ``match_and_explain`` reads the header out of
an :class:`~pktforge.mbuf.Mbuf` chain and reports the first field that
differs from the template.

The templates are read through plain attributes:

* Ethernet: ``dst``, ``src`` (:class:`EtherAddr` or text), ``ethertype``,
  ``mbuf_vlan``.
* IPv4: ``header_length`` (in 32-bit words), ``version``, ``tos``,
  ``ip_len``, ``id``, ``off``, ``ttl``, ``proto``, ``src``, ``dst``
  (:class:`Ipv4Addr` or text), ``checksum_verified``, ``checksum_passed``.
* IPv6: ``version``, ``traffic_class``, ``flow``, ``payload_length``,
  ``proto``, ``hop_limit``, ``src``, ``dst`` (:class:`Ipv6Addr` or text).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Optional, Type, TypeVar, Union

from .addresses import EtherAddr, Ipv4Addr, Ipv6Addr
from .mbuf import (
    CSUM_L3_CALC,
    CSUM_L3_VALID,
    M_VLANTAG,
    Mbuf,
)

ETHER_HEADER_LEN = 14
IPV4_HEADER_LEN = 20
IPV6_HEADER_LEN = 40

_A = TypeVar("_A", EtherAddr, Ipv4Addr, Ipv6Addr)


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a match: whether it matched, and why not if it did not."""

    matched: bool
    explanation: str = ""

    def __bool__(self) -> bool:
        return self.matched


_OK = MatchResult(True)


def _fail(message: str) -> MatchResult:
    return MatchResult(False, message)


def _as_addr(value: Union[str, bytes, _A], kind: Type[_A]) -> _A:
    if isinstance(value, kind):
        return value
    if isinstance(value, str):
        return kind.parse(value)
    return kind(bytes(value))


def _header_bytes(mbuf: Mbuf, offset: int, size: int, proto: str) -> Optional[bytes]:
    data = mbuf.contiguous_bytes()
    if offset < 0 or len(data) < offset + size:
        return None
    return data[offset : offset + size]


def _too_short(proto: str, mbuf: Mbuf, offset: int, size: int) -> MatchResult:
    available = max(len(mbuf.contiguous_bytes()) - offset, 0)
    return _fail(f"{proto}: packet has {available} bytes at offset {offset} (expected {size})")


class EthernetMatcher:
    """Checks an Ethernet header and the buffer's VLAN tag against a template."""

    def __init__(self, header: Any, offset: int = 0) -> None:
        self.header = header
        self.header_offset = offset

    def match_and_explain(self, mbuf: Mbuf) -> MatchResult:
        raw = _header_bytes(mbuf, self.header_offset, ETHER_HEADER_LEN, "Ethernet")
        if raw is None:
            return _too_short("Ethernet", mbuf, self.header_offset, ETHER_HEADER_LEN)

        h = self.header
        pkt_dst = EtherAddr(raw[0:6])
        expected_dst = _as_addr(h.dst, EtherAddr)
        if expected_dst != pkt_dst:
            return _fail(f"Ethernet: dst mac is {pkt_dst} (expected {expected_dst})")

        pkt_src = EtherAddr(raw[6:12])
        expected_src = _as_addr(h.src, EtherAddr)
        if expected_src != pkt_src:
            return _fail(f"Ethernet: src mac is {pkt_src} (expected {expected_src})")

        (pkt_type,) = struct.unpack("!H", raw[12:14])
        if h.ethertype != pkt_type:
            return _fail(f"Ethernet: ethertype is {pkt_type:x} (expected {h.ethertype:x})")

        tag = h.mbuf_vlan
        tagged = bool(mbuf.flags & M_VLANTAG)
        if tag == 0:
            if tagged:
                return _fail("Ethernet: M_VLANTAG is set on mbuf (expected no tag)")
        else:
            if not tagged:
                return _fail(f"Ethernet: M_VLANTAG is not set on mbuf (expected tag {tag})")
            if tag != mbuf.pkthdr.ether_vtag:
                return _fail(
                    f"Ethernet: mbuf ether_vlan is {mbuf.pkthdr.ether_vtag} (expected tag {tag})"
                )
        return _OK

    def describe(self) -> str:
        return "Ethernet"

    def __call__(self, mbuf: Mbuf) -> bool:
        return self.match_and_explain(mbuf).matched


class Ipv4Matcher:
    """Checks an IPv4 header and the L3 checksum flags against a template.

    The header checksum itself is not compared, since receive offload
    rewrites it.
    """

    def __init__(self, header: Any, offset: int = 0) -> None:
        self.header = header
        self.header_offset = offset

    def match_and_explain(self, mbuf: Mbuf) -> MatchResult:
        raw = _header_bytes(mbuf, self.header_offset, IPV4_HEADER_LEN, "IPv4")
        if raw is None:
            return _too_short("IPv4", mbuf, self.header_offset, IPV4_HEADER_LEN)

        h = self.header
        vhl, tos, ip_len, ip_id, ip_off, ttl, proto, _sum = struct.unpack("!BBHHHBBH", raw[:12])
        checks = (
            ("ip_hl", vhl & 0xF, h.header_length),
            ("ip_v", vhl >> 4, h.version),
            ("ip_tos", tos, h.tos),
            ("ip_len", ip_len, h.ip_len),
            ("ip_id", ip_id, h.id),
            ("ip_off", ip_off, h.off),
            ("ip_ttl", ttl, h.ttl),
            ("ip_p", proto, h.proto),
        )
        for name, actual, expected in checks:
            if actual != expected:
                return _fail(f"IPv4: {name} field is {actual} (expected {expected})")

        pkt_src = Ipv4Addr(raw[12:16])
        expected_src = _as_addr(h.src, Ipv4Addr)
        if expected_src != pkt_src:
            return _fail(f"IPv4: srcip field is {pkt_src} (expected {expected_src})")

        pkt_dst = Ipv4Addr(raw[16:20])
        expected_dst = _as_addr(h.dst, Ipv4Addr)
        if expected_dst != pkt_dst:
            return _fail(f"IPv4: dstip field is {pkt_dst} (expected {expected_dst})")

        csum_flags = mbuf.pkthdr.csum_flags
        expected_flag = CSUM_L3_CALC if h.checksum_verified else 0
        actual_flag = csum_flags & CSUM_L3_CALC
        if actual_flag != expected_flag:
            return _fail(
                f"IPv4: l3 csum calc flag is {actual_flag} (expected {expected_flag})"
            )

        expected_flag = CSUM_L3_VALID if h.checksum_passed else 0
        actual_flag = csum_flags & CSUM_L3_VALID
        if actual_flag != expected_flag:
            return _fail(
                f"IPv4: l3 csum valid flag is {actual_flag} (expected {expected_flag})"
            )
        return _OK

    def describe(self) -> str:
        return "IPv4"

    def __call__(self, mbuf: Mbuf) -> bool:
        return self.match_and_explain(mbuf).matched


class Ipv6Matcher:
    """Checks an IPv6 header against a template."""

    def __init__(self, header: Any, offset: int = 0) -> None:
        self.header = header
        self.header_offset = offset

    def match_and_explain(self, mbuf: Mbuf) -> MatchResult:
        raw = _header_bytes(mbuf, self.header_offset, IPV6_HEADER_LEN, "IPv6")
        if raw is None:
            return _too_short("IPv6", mbuf, self.header_offset, IPV6_HEADER_LEN)

        h = self.header
        word, plen, nxt, hlim = struct.unpack("!IHBB", raw[:8])
        checks = (
            ("ip6_class", (word >> 20) & 0xFF, h.traffic_class),
            ("ip6_version", word >> 28, h.version),
            ("ip6_flow", word & 0xFFFFF, h.flow),
            ("ip6_plen", plen, h.payload_length),
            ("ip6_nxt", nxt, h.proto),
            ("ip6_hlim", hlim, h.hop_limit),
        )
        for name, actual, expected in checks:
            if actual != expected:
                return _fail(f"IPv6: {name} field is {actual} (expected {expected})")

        pkt_src = Ipv6Addr(raw[8:24])
        expected_src = _as_addr(h.src, Ipv6Addr)
        if expected_src != pkt_src:
            return _fail(f"IPv6: src field is {pkt_src} (expected {expected_src})")

        pkt_dst = Ipv6Addr(raw[24:40])
        expected_dst = _as_addr(h.dst, Ipv6Addr)
        if expected_dst != pkt_dst:
            return _fail(f"IPv6: dst field is {pkt_dst} (expected {expected_dst})")
        return _OK

    def describe(self) -> str:
        return "IPv6"

    def __call__(self, mbuf: Mbuf) -> bool:
        return self.match_and_explain(mbuf).matched