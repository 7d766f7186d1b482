"""Identifiers for selecting a header layer within a packet template."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LayerVal(Enum):
    L2 = "L2"
    L3 = "L3"
    L4 = "L4"
    PAYLOAD = "PAYLOAD"


def make_layer_name(layer: LayerVal, nesting: int = 1) -> str:
    """Return a readable name such as ``L3`` or ``L4<-1>``."""
    short = LayerVal(layer).value
    if nesting == 1:
        return short
    return f"{short}<{nesting}>"


@dataclass(frozen=True)
class LayerRef:
    """A layer plus which occurrence of it to select.

    Positive nesting counts from the outermost header (1 is outermost);
    negative nesting counts from the innermost (-1 is innermost).
    """

    layer: LayerVal
    nesting: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "layer", LayerVal(self.layer))
        if self.nesting == 0:
            raise ValueError("layer nesting must not be zero")

    def __str__(self) -> str:
        return make_layer_name(self.layer, self.nesting)


def nested(layer: LayerVal, nesting: int) -> LayerRef:
    """Refer to the ``nesting``-th occurrence of ``layer``."""
    return LayerRef(layer, nesting)


L2 = LayerRef(LayerVal.L2, 1)
L3 = LayerRef(LayerVal.L3, 1)
L4 = LayerRef(LayerVal.L4, 1)
PAYLOAD = LayerRef(LayerVal.PAYLOAD, 1)

OUTER_L2 = LayerRef(LayerVal.L2, 1)
OUTER_L3 = LayerRef(LayerVal.L3, 1)
OUTER_L4 = LayerRef(LayerVal.L4, 1)

INNER_L2 = LayerRef(LayerVal.L2, -1)
INNER_L3 = LayerRef(LayerVal.L3, -1)
INNER_L4 = LayerRef(LayerVal.L4, -1)