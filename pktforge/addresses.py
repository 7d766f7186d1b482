"""Link-layer and IP address value types."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass

ETHER_ADDR_LEN = 6

_HEX_OCTET = r"\s*([0-9A-Fa-f]{1,2})"
_ETHER_RE = re.compile(":".join([_HEX_OCTET] * ETHER_ADDR_LEN))


def _as_bytes(value: object, size: int, kind: str) -> bytes:
    data = bytes(value)  # type: ignore[call-overload]
    if len(data) != size:
        raise ValueError(f"{kind} must be {size} bytes, got {len(data)}")
    return data


@dataclass(frozen=True)
class EtherAddr:
    """A 6-byte Ethernet MAC address."""

    octets: bytes = bytes(ETHER_ADDR_LEN)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "octets", _as_bytes(self.octets, ETHER_ADDR_LEN, "ether address")
        )

    @classmethod
    def parse(cls, text: str) -> "EtherAddr":
        """Parse colon-separated hex octets such as ``01:02:03:04:05:06``."""
        match = _ETHER_RE.match(text)
        if match is None:
            raise ValueError(f"parse ether addr failed: {text!r}")
        return cls(bytes(int(g, 16) for g in match.groups()))

    def to_bytes(self) -> bytes:
        return self.octets

    def __str__(self) -> str:
        return ":".join(f"{b:02x}" for b in self.octets)


@dataclass(frozen=True)
class Ipv4Addr:
    """An IPv4 address held in network byte order."""

    packed: bytes = bytes(4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "packed", _as_bytes(self.packed, 4, "IPv4 address"))

    @classmethod
    def parse(cls, text: str) -> "Ipv4Addr":
        """Parse a dotted-quad address."""
        if not isinstance(text, str):
            raise TypeError("IPv4 address text must be a str")
        try:
            return cls(ipaddress.IPv4Address(text).packed)
        except ValueError as exc:
            raise ValueError(f"invalid IPv4 address: {text!r}") from exc

    def to_bytes(self) -> bytes:
        return self.packed

    def __str__(self) -> str:
        return ".".join(str(b) for b in self.packed)


@dataclass(frozen=True)
class Ipv6Addr:
    """An IPv6 address held in network byte order."""

    packed: bytes = bytes(16)

    def __post_init__(self) -> None:
        object.__setattr__(self, "packed", _as_bytes(self.packed, 16, "IPv6 address"))

    @classmethod
    def parse(cls, text: str) -> "Ipv6Addr":
        """Parse a textual IPv6 address."""
        if not isinstance(text, str):
            raise TypeError("IPv6 address text must be a str")
        if "%" in text:
            raise ValueError(f"invalid IPv6 address: {text!r}")
        try:
            return cls(ipaddress.IPv6Address(text).packed)
        except ValueError as exc:
            raise ValueError(f"invalid IPv6 address: {text!r}") from exc

    def to_bytes(self) -> bytes:
        return self.packed

    def __str__(self) -> str:
        return ipaddress.IPv6Address(self.packed).compressed