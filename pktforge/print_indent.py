"""Indented diagnostic output."""

from __future__ import annotations

import sys
from typing import Any, Optional, TextIO

_INDENT = "    "


def print_indent(depth: int, fmt: str, *args: Any, stream: Optional[TextIO] = None) -> None:
    """Write ``fmt % args`` indented by ``depth`` levels, ending with a newline.

    Output goes to standard error unless ``stream`` is given.
    """
    out = sys.stderr if stream is None else stream
    out.write(_INDENT * max(depth, 0) + (fmt % args) + "\n")