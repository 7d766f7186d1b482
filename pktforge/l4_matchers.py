"""Matchers that check the TCP header and the payload inside a packet buffer.

The TCP template is read through plain attributes: ``src`` and ``dst``
(ports), ``seq``, ``ack``, ``off`` (data offset in 32-bit words), ``x2``,
``flags``, ``window``, ``urgent_pointer``, ``checksum_verified`` and
``checksum_passed``.

The payload template is read through ``payload`` (the pattern bytes),
``start_index`` (the pattern position of the first byte in this packet) and
``fill_len`` (the pattern position at which this packet's payload ends).
"""

from __future__ import annotations

import struct
from typing import Any, Tuple

from .l2l3_matchers import MatchResult
from .mbuf import CSUM_L4_CALC, CSUM_L4_VALID, Mbuf

TCP_HEADER_LEN = 20

_OK = MatchResult(True)


def _fail(message: str) -> MatchResult:
    return MatchResult(False, message)


def _printable(byte: int) -> str:
    return f"('{chr(byte)}')" if 0x20 <= byte < 0x7F else ""


class TcpMatcher:
    """Checks a TCP header and the L4 checksum flags against a template.

    The checksum field itself is not compared, since receive offload
    rewrites it.
    """

    def __init__(self, header: Any, offset: int = 0) -> None:
        self.header = header
        self.header_offset = offset

    def match_and_explain(self, mbuf: Mbuf) -> MatchResult:
        data = mbuf.contiguous_bytes()
        start = self.header_offset
        if start < 0 or len(data) < start + TCP_HEADER_LEN:
            available = max(len(data) - start, 0)
            return _fail(
                f"TCP: packet has {available} bytes at offset {start} "
                f"(expected {TCP_HEADER_LEN})"
            )

        raw = data[start : start + TCP_HEADER_LEN]
        sport, dport, seq, ack, offx2, flags, win, _sum, urp = struct.unpack(
            "!HHIIBBHHH", raw
        )
        h = self.header
        checks = (
            ("th_sport", sport, h.src),
            ("th_dport", dport, h.dst),
            ("th_seq", seq, h.seq),
            ("th_ack", ack, h.ack),
            ("th_off", offx2 >> 4, h.off),
            ("th_x2", offx2 & 0xF, h.x2),
            ("th_flags", flags, h.flags),
            ("th_win", win, h.window),
            ("th_urp", urp, h.urgent_pointer),
        )
        for name, actual, expected in checks:
            if actual != expected:
                return _fail(f"TCP: {name} field is {actual} (expected {expected})")

        csum_flags = mbuf.pkthdr.csum_flags
        expected_flag = CSUM_L4_CALC if h.checksum_verified else 0
        actual_flag = csum_flags & CSUM_L4_CALC
        if actual_flag != expected_flag:
            return _fail(f"TCP: csum calc flag is {actual_flag} (expected {expected_flag})")

        expected_flag = CSUM_L4_VALID if h.checksum_passed else 0
        actual_flag = csum_flags & CSUM_L4_VALID
        if actual_flag != expected_flag:
            return _fail(f"TCP: csum valid flag is {actual_flag} (expected {expected_flag})")
        return _OK

    def describe(self) -> str:
        return "TCP"

    def __call__(self, mbuf: Mbuf) -> bool:
        return self.match_and_explain(mbuf).matched


class PayloadMatcher:
    """Checks the payload bytes of a packet chain against a payload template."""

    def __init__(self, payload: Any, offset: int = 0) -> None:
        self.payload = payload
        self.header_offset = offset

    @staticmethod
    def _test_pattern(
        m: Mbuf,
        hdroff: int,
        mbuf_number: int,
        index: int,
        pattern: bytes,
        fill_len: int,
    ) -> Tuple[MatchResult, int]:
        for mb_index in range(max(hdroff, 0), m.len):
            if index >= fill_len:
                break
            actual = m.data[mb_index]
            expected = pattern[index]
            if actual != expected:
                return (
                    _fail(
                        f"Payload incorrect at mbuf {mbuf_number} index {mb_index} "
                        f"(payload index {index}) value {actual:x}{_printable(actual)} "
                        f"(expected {expected:x}{_printable(expected)})"
                    ),
                    index,
                )
            index += 1
        return _OK, index

    def match_and_explain(self, mbuf: Mbuf) -> MatchResult:
        pattern = bytes(self.payload.payload)
        index = self.payload.start_index
        fill_len = self.payload.fill_len

        available = mbuf.pkthdr.len - self.header_offset
        if available < fill_len:
            return _fail(f"payload len is {available} (expected {fill_len})")

        hdroff = self.header_offset
        for number, m in enumerate(mbuf.chain()):
            if index >= len(pattern):
                break
            result, index = self._test_pattern(m, hdroff, number, index, pattern, fill_len)
            if not result:
                return result
            hdroff = 0
        return _OK

    def describe(self) -> str:
        return "Payload"

    def __call__(self, mbuf: Mbuf) -> bool:
        return self.match_and_explain(mbuf).matched