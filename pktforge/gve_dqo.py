"""DQO descriptor formats of the gVNIC network device.

Each descriptor is a dataclass whose ``pack`` returns its exact wire image
and whose ``unpack`` reads one back. Bit fields are laid out from the least
significant bit of each little-endian word, as the device expects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple, Type, Union

GVE_ITR_ENABLE_BIT_DQO = 1 << 0
GVE_ITR_NO_UPDATE_DQO = 3 << 3
GVE_ITR_INTERVAL_DQO_SHIFT = 5
GVE_ITR_INTERVAL_DQO_MASK = (1 << 12) - 1
GVE_TX_IRQ_RATELIMIT_US_DQO = 50
GVE_RX_IRQ_RATELIMIT_US_DQO = 20

GVE_TX_MAX_HDR_SIZE_DQO = 255
GVE_TX_MIN_TSO_MSS_DQO = 88

# Ringing the doorbell too often hurts performance; hardware needs at least 8.
GVE_RX_BUF_THRESH_DQO = 32
# Start dropping RX fragments once this many buffers cannot be posted.
GVE_RX_DQO_MIN_PENDING_BUFS = 128
# The 11-bit buf_id field limits a QPL to 2048 pages.
GVE_RX_NUM_QPL_PAGES_DQO = 2048

GVE_TX_BUF_SHIFT_DQO = 11
GVE_TX_BUF_SIZE_DQO = 1 << GVE_TX_BUF_SHIFT_DQO
GVE_TX_NUM_QPL_PAGES_DQO = 512

GVE_TX_PKT_DESC_DTYPE_DQO = 0xC
GVE_TX_MAX_DATA_DESCS_DQO = 10
GVE_TX_MAX_BUF_SIZE_DQO = (16 * 1024) - 1
IP_MAXPACKET = 65535
GVE_TSO_MAXSIZE_DQO = IP_MAXPACKET

# report_event may only be set on a packet's last descriptor, at least this far apart.
GVE_TX_MIN_RE_INTERVAL = 32

GVE_TX_TSO_CTX_DESC_DTYPE_DQO = 0x5
GVE_TX_GENERAL_CTX_DESC_DTYPE_DQO = 0x4
GVE_TX_METADATA_VERSION_DQO = 0

GVE_TX_DESC_DQO_GEN_BYTE_OFFSET = 1
GVE_TX_DESC_DQO_GEN_BIT_MASK = 0x80

GVE_COMPL_TYPE_DQO_PKT = 0x2
GVE_COMPL_TYPE_DQO_DESC = 0x4

GVE_RX_DESC_DQO_GEN_BYTE_OFFSET = 5
GVE_RX_DESC_DQO_GEN_BIT_MASK = 0x40

_Spec = Union[int, Type["_Descriptor"]]
_Layout = Tuple[Tuple[Optional[str], _Spec], ...]


def _width(spec: _Spec) -> int:
    return spec if isinstance(spec, int) else spec.SIZE * 8


class _Descriptor:
    """Checks at class creation that the bit layout fills ``SIZE`` bytes."""

    SIZE: ClassVar[int] = 0
    _LAYOUT: ClassVar[_Layout] = ()

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        total = sum(_width(spec) for _, spec in cls._LAYOUT)
        if total != cls.SIZE * 8:
            raise TypeError(f"{cls.__name__}: layout is {total} bits, expected {cls.SIZE * 8}")


def _pack(desc: Any) -> bytes:
    value = 0
    shift = 0
    for name, spec in desc._LAYOUT:
        bits = _width(spec)
        if name is None:
            part = 0
        elif isinstance(spec, int):
            part = int(getattr(desc, name))
            if not 0 <= part < (1 << bits):
                raise ValueError(f"{name}={part} does not fit in {bits} bits")
        else:
            part = int.from_bytes(getattr(desc, name).pack(), "little")
        value |= part << shift
        shift += bits
    return value.to_bytes(desc.SIZE, "little")


def _unpack(cls: Any, data: bytes) -> Any:
    raw = bytes(data)
    if len(raw) != cls.SIZE:
        raise ValueError(f"{cls.__name__} needs {cls.SIZE} bytes, got {len(raw)}")
    value = int.from_bytes(raw, "little")
    kwargs: Dict[str, object] = {}
    for name, spec in cls._LAYOUT:
        bits = _width(spec)
        part = value & ((1 << bits) - 1)
        value >>= bits
        if name is None:
            continue
        if isinstance(spec, int):
            kwargs[name] = part
        else:
            kwargs[name] = spec.unpack(part.to_bytes(bits // 8, "little"))
    return cls(**kwargs)


@dataclass
class TxPktDesc(_Descriptor):
    """Basic TX packet descriptor (dtype 0xc)."""

    SIZE: ClassVar[int] = 16
    _LAYOUT: ClassVar[_Layout] = (
        ("buf_addr", 64),
        ("dtype", 5),
        ("end_of_packet", 1),
        ("checksum_offload_enable", 1),
        ("report_event", 1),
        ("reserved0", 8),
        ("reserved1", 16),
        ("compl_tag", 16),
        ("buf_size", 14),
        ("reserved2", 2),
    )

    buf_addr: int = 0
    dtype: int = GVE_TX_PKT_DESC_DTYPE_DQO
    end_of_packet: int = 0
    checksum_offload_enable: int = 0
    report_event: int = 0
    reserved0: int = 0
    reserved1: int = 0
    compl_tag: int = 0
    buf_size: int = 0
    reserved2: int = 0

    def pack(self) -> bytes:
        """Return the descriptor's wire image."""
        return _pack(self)

    @classmethod
    def unpack(cls, data: bytes) -> "TxPktDesc":
        """Read a descriptor from exactly ``SIZE`` bytes."""
        return _unpack(cls, data)


@dataclass
class TxContextCmdDtype(_Descriptor):
    """Command and descriptor-type word shared by TX context descriptors."""

    SIZE: ClassVar[int] = 2
    _LAYOUT: ClassVar[_Layout] = (
        ("dtype", 5),
        ("tso", 1),
        ("reserved1", 2),
        ("reserved2", 8),
    )

    dtype: int = 0
    tso: int = 0
    reserved1: int = 0
    reserved2: int = 0

    def pack(self) -> bytes:
        """Return the word's wire image."""
        return _pack(self)

    @classmethod
    def unpack(cls, data: bytes) -> "TxContextCmdDtype":
        """Read the word from exactly ``SIZE`` bytes."""
        return _unpack(cls, data)


@dataclass
class TxTsoContextDesc(_Descriptor):
    """TX native TSO context descriptor (dtype 0x5)."""

    SIZE: ClassVar[int] = 16
    _LAYOUT: ClassVar[_Layout] = (
        ("tso_total_len", 24),
        ("flex10", 8),
        ("mss", 14),
        ("reserved", 2),
        ("header_len", 8),
        ("flex11", 8),
        ("cmd_dtype", TxContextCmdDtype),
        ("flex0", 8),
        ("flex5", 8),
        ("flex6", 8),
        ("flex7", 8),
        ("flex8", 8),
        ("flex9", 8),
    )

    tso_total_len: int = 0
    flex10: int = 0
    mss: int = 0
    reserved: int = 0
    header_len: int = 0
    flex11: int = 0
    cmd_dtype: TxContextCmdDtype = field(
        default_factory=lambda: TxContextCmdDtype(dtype=GVE_TX_TSO_CTX_DESC_DTYPE_DQO, tso=1)
    )
    flex0: int = 0
    flex5: int = 0
    flex6: int = 0
    flex7: int = 0
    flex8: int = 0
    flex9: int = 0

    def pack(self) -> bytes:
        """Return the descriptor's wire image."""
        return _pack(self)

    @classmethod
    def unpack(cls, data: bytes) -> "TxTsoContextDesc":
        """Read a descriptor from exactly ``SIZE`` bytes."""
        return _unpack(cls, data)


@dataclass
class TxGeneralContextDesc(_Descriptor):
    """General TX context descriptor for sending metadata (dtype 0x4)."""

    SIZE: ClassVar[int] = 16
    _LAYOUT: ClassVar[_Layout] = (
        ("flex4", 8),
        ("flex5", 8),
        ("flex6", 8),
        ("flex7", 8),
        ("flex8", 8),
        ("flex9", 8),
        ("flex10", 8),
        ("flex11", 8),
        ("cmd_dtype", TxContextCmdDtype),
        ("reserved", 16),
        ("flex0", 8),
        ("flex1", 8),
        ("flex2", 8),
        ("flex3", 8),
    )

    flex4: int = 0
    flex5: int = 0
    flex6: int = 0
    flex7: int = 0
    flex8: int = 0
    flex9: int = 0
    flex10: int = 0
    flex11: int = 0
    cmd_dtype: TxContextCmdDtype = field(
        default_factory=lambda: TxContextCmdDtype(dtype=GVE_TX_GENERAL_CTX_DESC_DTYPE_DQO)
    )
    reserved: int = 0
    flex0: int = 0
    flex1: int = 0
    flex2: int = 0
    flex3: int = 0

    def pack(self) -> bytes:
        """Return the descriptor's wire image."""
        return _pack(self)

    @classmethod
    def unpack(cls, data: bytes) -> "TxGeneralContextDesc":
        """Read a descriptor from exactly ``SIZE`` bytes."""
        return _unpack(cls, data)


@dataclass
class TxMetadata(_Descriptor):
    """Metadata packed into the flex fields of a context descriptor.

    ``path_hash`` of zero means no L4 hash was associated with the packet;
    ``rehash_event`` is set when the flow was rehashed by the TCP stack.
    """

    SIZE: ClassVar[int] = 12
    _LAYOUT: ClassVar[_Layout] = (
        ("version", 8),
        ("path_hash", 15),
        ("rehash_event", 1),
        (None, 72),
    )

    version: int = GVE_TX_METADATA_VERSION_DQO
    path_hash: int = 0
    rehash_event: int = 0

    def pack(self) -> bytes:
        """Return the metadata's wire image."""
        return _pack(self)

    @classmethod
    def unpack(cls, data: bytes) -> "TxMetadata":
        """Read metadata from exactly ``SIZE`` bytes."""
        return _unpack(cls, data)


@dataclass
class TxComplDesc(_Descriptor):
    """TX completion descriptor.

    ``tx_head`` holds the last fetched index + 1 for descriptor completions
    and the completion tag for packet completions.
    """

    SIZE: ClassVar[int] = 8
    _LAYOUT: ClassVar[_Layout] = (
        ("id", 11),
        ("type", 3),
        ("reserved0", 1),
        ("generation", 1),
        ("tx_head", 16),
        ("reserved1", 32),
    )

    id: int = 0
    type: int = 0
    reserved0: int = 0
    generation: int = 0
    tx_head: int = 0
    reserved1: int = 0

    @property
    def completion_tag(self) -> int:
        return self.tx_head

    @completion_tag.setter
    def completion_tag(self, value: int) -> None:
        self.tx_head = value

    def pack(self) -> bytes:
        """Return the descriptor's wire image."""
        return _pack(self)

    @classmethod
    def unpack(cls, data: bytes) -> "TxComplDesc":
        """Read a descriptor from exactly ``SIZE`` bytes."""
        return _unpack(cls, data)


@dataclass
class RxDesc(_Descriptor):
    """Descriptor that posts a receive buffer to the device."""

    SIZE: ClassVar[int] = 32
    _LAYOUT: ClassVar[_Layout] = (
        ("buf_id", 16),
        ("reserved0", 16),
        ("reserved1", 32),
        ("buf_addr", 64),
        ("header_buf_addr", 64),
        ("reserved2", 64),
    )

    buf_id: int = 0
    reserved0: int = 0
    reserved1: int = 0
    buf_addr: int = 0
    header_buf_addr: int = 0
    reserved2: int = 0

    def pack(self) -> bytes:
        """Return the descriptor's wire image."""
        return _pack(self)

    @classmethod
    def unpack(cls, data: bytes) -> "RxDesc":
        """Read a descriptor from exactly ``SIZE`` bytes."""
        return _unpack(cls, data)


@dataclass
class RxComplDesc(_Descriptor):
    """Descriptor in which the device reports a received packet.

    ``raw_cs`` holds the packet checksum, or the segment length for RSC packets.
    """

    SIZE: ClassVar[int] = 32
    _LAYOUT: ClassVar[_Layout] = (
        ("rxdid", 4),
        ("reserved0", 4),
        ("loopback", 1),
        ("ipv6_ex_add", 1),
        ("rx_error", 1),
        ("reserved1", 5),
        ("packet_type", 10),
        ("ip_hdr_err", 1),
        ("udp_len_err", 1),
        ("raw_cs_invalid", 1),
        ("reserved2", 3),
        ("packet_len", 14),
        ("generation", 1),
        ("buffer_queue_id", 1),
        ("header_len", 10),
        ("rsc", 1),
        ("split_header", 1),
        ("reserved3", 4),
        ("descriptor_done", 1),
        ("end_of_packet", 1),
        ("header_buffer_overflow", 1),
        ("l3_l4_processed", 1),
        ("csum_ip_err", 1),
        ("csum_l4_err", 1),
        ("csum_external_ip_err", 1),
        ("csum_external_udp_err", 1),
        ("status_error1", 8),
        ("reserved5", 16),
        ("buf_id", 16),
        ("raw_cs", 16),
        ("hash", 32),
        ("reserved6", 32),
        ("reserved7", 64),
    )

    rxdid: int = 1
    reserved0: int = 0
    loopback: int = 0
    ipv6_ex_add: int = 0
    rx_error: int = 0
    reserved1: int = 0
    packet_type: int = 0
    ip_hdr_err: int = 0
    udp_len_err: int = 0
    raw_cs_invalid: int = 0
    reserved2: int = 0
    packet_len: int = 0
    generation: int = 0
    buffer_queue_id: int = 0
    header_len: int = 0
    rsc: int = 0
    split_header: int = 0
    reserved3: int = 0
    descriptor_done: int = 0
    end_of_packet: int = 0
    header_buffer_overflow: int = 0
    l3_l4_processed: int = 0
    csum_ip_err: int = 0
    csum_l4_err: int = 0
    csum_external_ip_err: int = 0
    csum_external_udp_err: int = 0
    status_error1: int = 0
    reserved5: int = 0
    buf_id: int = 0
    raw_cs: int = 0
    hash: int = 0
    reserved6: int = 0
    reserved7: int = 0

    @property
    def rsc_seg_len(self) -> int:
        return self.raw_cs

    @rsc_seg_len.setter
    def rsc_seg_len(self, value: int) -> None:
        self.raw_cs = value

    def pack(self) -> bytes:
        """Return the descriptor's wire image."""
        return _pack(self)

    @classmethod
    def unpack(cls, data: bytes) -> "RxComplDesc":
        """Read a descriptor from exactly ``SIZE`` bytes."""
        return _unpack(cls, data)


def num_frags_in_page(page_size: int, rx_buf_size: int) -> int:
    """Return how many receive buffers fit in one page, as an 8-bit count."""
    return (page_size // rx_buf_size) & 0xFF