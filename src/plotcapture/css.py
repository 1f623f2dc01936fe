# src/plotcapture/css.py
from __future__ import annotations

import math
import re
from typing import Any

_KEYWORDS = frozenset(
    {
        "auto",
        "inherit",
        "initial",
        "unset",
        "fit-content",
        "min-content",
        "max-content",
    }
)

_LENGTH_RE = re.compile(
    r"^(-?\d*\.?\d+)(px|%|em|rem|ex|ch|cm|mm|in|pt|pc|vh|vw|vmin|vmax|fr)$"
)
_NUMBER_RE = re.compile(r"^-?\d*\.?\d+$")
_CALC_RE = re.compile(r"^calc\(.*\)$", re.IGNORECASE)


def _format_number(x: float) -> str:
    if float(x).is_integer():
        return str(int(x))
    return f"{x:g}"


def validate_css_unit(x: Any) -> str | None:
    """
    Turn a width/height into a valid CSS length.

    Numbers (and numeric strings) are taken as pixels: 375 -> "375px".
    Lengths with a unit, keywords such as "auto", and calc() expressions are
    returned unchanged. None stays None.

    Raises ValueError for anything else.
    """
    if x is None:
        return None

    if isinstance(x, bool):
        raise ValueError(f"{x!r} is not a valid CSS unit")

    if isinstance(x, (int, float)):
        if not math.isfinite(x):
            raise ValueError(f"{x!r} is not a valid CSS unit")
        return f"{_format_number(x)}px"

    if isinstance(x, str):
        s = x.strip()
        if _NUMBER_RE.match(s):
            return f"{_format_number(float(s))}px"
        if _LENGTH_RE.match(s) or s.lower() in _KEYWORDS or _CALC_RE.match(s):
            return s

    raise ValueError(
        f"{x!r} is not a valid CSS unit (e.g., \"100%\", \"400px\", \"auto\")"
    )


def css(**props: Any) -> str:
    """
    Build a CSS declaration string from keyword arguments.

    None values are skipped and underscores become hyphens, so
    css(width="375px", max_width=None) == "width:375px;".
    """
    return "".join(
        f"{name.replace('_', '-')}:{value};"
        for name, value in props.items()
        if value is not None
    )
