"""Packet templates built from an ordered stack of header templates.

A header template is any object that provides:

* ``layer`` -- a :class:`~pktforge.layer.LayerVal` naming its layer;
* ``length`` -- the number of bytes the header itself occupies;
* ``payload_length`` -- the number of bytes that follow it (writable);
* ``mtu`` -- the largest packet the header may describe;
* ``set_outer_mtu(mtu)`` -- receives the room left by the enclosing header;
* ``fill_packet(mbuf, offset)`` -- writes the header into a buffer;
* ``next()`` and ``retransmission()`` -- return the follow-on template;
* ``print(depth)`` -- writes a readable dump of the header.

A header may also define ``set_lower_fields(lower)`` to replace the default
way its size is recorded in the header that encloses it.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Protocol, Sequence, Tuple, Union

from .layer import LayerRef, LayerVal
from .mbuf import Mbuf, alloc_mbuf

Mutator = Callable[[Any], None]


class _Header(Protocol):
    layer: LayerVal
    length: int
    payload_length: int
    mtu: int

    def set_outer_mtu(self, mtu: int) -> None: ...

    def fill_packet(self, mbuf: Mbuf, offset: int) -> None: ...

    def next(self) -> "_Header": ...

    def retransmission(self) -> "_Header": ...

    def print(self, depth: int) -> None: ...


def _apply(header: Any, mutators: Iterable[Mutator]) -> Any:
    result = copy.deepcopy(header)
    for mutate in mutators:
        mutate(result)
    return result


def _propagate_inward(headers: Sequence[Any]) -> None:
    """Tell each header how much room its enclosing header leaves."""
    for lower, upper in zip(headers, headers[1:]):
        upper.set_outer_mtu(lower.mtu - lower.length)


def _propagate_outward(headers: Sequence[Any]) -> None:
    """Record in each header the size of everything it encloses."""
    for lower, upper in reversed(list(zip(headers, headers[1:]))):
        setter = getattr(upper, "set_lower_fields", None)
        if setter is None:
            lower.payload_length = upper.length + upper.payload_length
        else:
            setter(lower)


def _find_layer(headers: Sequence[Any], ref: LayerRef) -> int:
    positions = [i for i, h in enumerate(headers) if h.layer == ref.layer]
    occurrence = ref.nesting if ref.nesting > 0 else len(positions) + ref.nesting + 1
    if not 1 <= occurrence <= len(positions):
        raise LookupError(f"template has no {ref} header")
    return positions[occurrence - 1]


class PacketTemplateWrapper:
    """An immutable stack of header templates, outermost first."""

    __slots__ = ("_headers",)

    def __init__(self, *headers: Any) -> None:
        if not headers:
            raise ValueError("a packet template needs at least one header")
        self._headers: Tuple[Any, ...] = tuple(copy.deepcopy(headers))
        _propagate_inward(self._headers)
        _propagate_outward(self._headers)

    def _with_at(self, index: int, mutators: Iterable[Mutator]) -> "PacketTemplateWrapper":
        updated: List[Any] = list(self._headers)
        updated[index] = _apply(updated[index], mutators)
        return type(self)(*updated)

    def with_(self, *args: Mutator) -> "PacketTemplateWrapper":
        """Return a copy with the mutators applied to the innermost header."""
        return self._with_at(len(self._headers) - 1, args)

    def with_header(self, layer: Union[LayerRef, LayerVal]) -> "HeaderSelection":
        """Select the header named by ``layer`` for a following ``fields`` call."""
        ref = layer if isinstance(layer, LayerRef) else LayerRef(LayerVal(layer))
        return HeaderSelection(self, _find_layer(self._headers, ref))

    def generate(self) -> Mbuf:
        """Build a packet buffer holding every header and the payload."""
        outer = self._headers[0]
        m = alloc_mbuf(outer.length + outer.payload_length)
        offset = 0
        for header in self._headers:
            header.fill_packet(m, offset)
            offset += header.length
        return m

    def next(self) -> "PacketTemplateWrapper":
        """Return the template for the next packet of the same stream."""
        return type(self)(*(h.next() for h in self._headers))

    def retransmission(self) -> "PacketTemplateWrapper":
        """Return the template for a retransmission of this packet."""
        return type(self)(*(h.retransmission() for h in self._headers))

    def unwrap(self) -> Tuple[Any, ...]:
        """Return the header templates, outermost first."""
        return self._headers

    def print(self) -> None:
        for header in self._headers:
            header.print(0)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        names = ", ".join(type(h).__name__ for h in self._headers)
        return f"{type(self).__name__}({names})"


@dataclass(frozen=True)
class HeaderSelection:
    """One header of a template, chosen for modification."""

    template: PacketTemplateWrapper
    index: int

    def fields(self, *args: Mutator) -> PacketTemplateWrapper:
        """Return a new template with the mutators applied to the selected header."""
        return self.template._with_at(self.index, args)


def packet_template(*args: Any) -> PacketTemplateWrapper:
    """Concatenate templates (or bare header templates) into one packet template."""
    headers: List[Any] = []
    for item in args:
        if isinstance(item, PacketTemplateWrapper):
            headers.extend(item.unwrap())
        else:
            headers.append(item)
    return PacketTemplateWrapper(*headers)