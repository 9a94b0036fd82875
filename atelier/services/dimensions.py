"""
Dimension parsing for painting records.

A painting's size is stored only as free text such as ``"24 x 36 inches"``
(height first, then width). Everything that needs numbers, such as card
layout, aspect ratios, the home-page collage or the price calculator,
goes through here. Historical data is messy, so nothing in this module
raises on bad input.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal

from pydantic import BaseModel

from atelier.config import (
    DEFAULT_DIMENSION_UNIT,
    FALLBACK_ASPECT_RATIO,
    FALLBACK_SIDE,
    RELATIVE_SCALE_BASE,
    RELATIVE_SCALE_BOUNDS,
)

_DIMENSIONS_RE = re.compile(r"^(\d+(\.\d+)?)\s*x\s*(\d+(\.\d+)?)", re.IGNORECASE)


class Dimensions(BaseModel):
    """Height and width of a painting, in the unit of the source string."""

    height: float
    width: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def area(self) -> float:
        return self.height * self.width


def parse_dimensions(text: str | None) -> Dimensions | None:
    """Extract ``height x width`` from the start of *text*.

    Returns ``None`` when the pattern does not match or either side is
    zero.
    """
    if not text:
        return None

    match = _DIMENSIONS_RE.match(text.strip())
    if match is None:
        return None

    height = float(match.group(1))
    width = float(match.group(3))
    if height <= 0 or width <= 0:
        return None

    return Dimensions(height=height, width=width)


def aspect_ratio(text: str | None) -> float:
    """Width / height, or 3:4 when *text* cannot be parsed."""
    dims = parse_dimensions(text)
    if dims is None:
        return FALLBACK_ASPECT_RATIO
    return dims.aspect_ratio


def area(text: str | None) -> float | None:
    """Square area of the painting, or ``None`` when unparsable."""
    dims = parse_dimensions(text)
    return dims.area if dims else None


def relative_scale(text: str | None) -> float:
    """Display scale of a painting relative to its neighbours.

    The square root of the area keeps very large canvases from dominating
    the collage; the result is clamped to ``RELATIVE_SCALE_BOUNDS``.
    Unparsable sizes are treated as a 10 x 10 canvas.
    """
    dims = parse_dimensions(text)
    if dims is None:
        dims = Dimensions(height=FALLBACK_SIDE, width=FALLBACK_SIDE)

    scale = math.sqrt(dims.area) / RELATIVE_SCALE_BASE
    low, high = RELATIVE_SCALE_BOUNDS
    return max(low, min(scale, high))


def _format_number(value: float) -> str:
    """Plain decimal notation that parses back to exactly *value*."""
    if float(value).is_integer():
        return str(int(value))
    return format(Decimal(repr(float(value))), "f")


def format_dimensions(height: float, width: float, unit: str = DEFAULT_DIMENSION_UNIT) -> str:
    """Compose the canonical ``"{height} x {width} {unit}"`` string."""
    return f"{_format_number(height)} x {_format_number(width)} {unit}".rstrip()
