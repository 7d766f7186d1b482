"""A minimal in-memory packet buffer modelled on the kernel mbuf."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

M_PKTHDR = 0x00000002
M_VLANTAG = 0x00000080

CSUM_L3_CALC = 0x01000000
CSUM_L3_VALID = 0x02000000
CSUM_L4_CALC = 0x04000000
CSUM_L4_VALID = 0x08000000


@dataclass
class PacketHeader:
    """Per-packet metadata carried by the first buffer of a chain."""

    len: int = 0
    ether_vtag: int = 0
    csum_flags: int = 0


@dataclass(eq=False)
class Mbuf:
    """One buffer in a packet chain.

    ``len`` is the number of valid bytes at the start of ``data``; ``next``
    links to the following buffer of the same packet.
    """

    data: bytearray
    len: int
    flags: int = 0
    pkthdr: PacketHeader = field(default_factory=PacketHeader)
    next: Optional["Mbuf"] = None

    def __post_init__(self) -> None:
        if not isinstance(self.data, bytearray):
            self.data = bytearray(self.data)
        if not 0 <= self.len <= len(self.data):
            raise ValueError(
                f"buffer length {self.len} outside 0..{len(self.data)}"
            )

    def chain(self) -> Iterator["Mbuf"]:
        """Yield this buffer and every buffer linked after it."""
        m: Optional[Mbuf] = self
        while m is not None:
            yield m
            m = m.next

    def contiguous_bytes(self) -> bytes:
        """Return the valid bytes of the whole chain as one bytes object."""
        return b"".join(bytes(m.data[: m.len]) for m in self.chain())


def alloc_mbuf(size: int) -> Mbuf:
    """Allocate a zero-filled packet-header buffer able to hold ``size`` bytes."""
    if size < 0:
        raise ValueError(f"cannot allocate a buffer of negative size {size}")
    m = Mbuf(bytearray(size), size, flags=M_PKTHDR)
    m.pkthdr.len = size
    return m