"""Suggested-price calculation for the admin painting form."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, field_validator

from atelier.services.dimensions import parse_dimensions


def coerce_amount(value: Any) -> float:
    """Read a form value as a non-negative number; anything else is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


class PriceInputs(BaseModel):
    """The calculator's view-model, recomputed on every field change."""

    height: float = 0.0
    width: float = 0.0
    rate_per_square_inch: float = 0.0
    material_costs: float = 0.0

    @field_validator("height", "width", "rate_per_square_inch", "material_costs", mode="before")
    @classmethod
    def _default_to_zero(cls, v: Any) -> float:
        return coerce_amount(v)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def suggest_price(inputs: PriceInputs) -> int:
    """``round(height * width * rate + material_costs)``.

    Advisory only: the operator may keep it, type any positive amount, or
    choose "Enquire".
    """
    raw = inputs.height * inputs.width * inputs.rate_per_square_inch + inputs.material_costs
    return _round_half_up(raw)


def suggest_price_for_dimensions(
    dimensions: str | None,
    rate_per_square_inch: Any = 0,
    material_costs: Any = 0,
) -> int:
    """Suggested price straight from a stored dimensions string."""
    dims = parse_dimensions(dimensions)
    return suggest_price(
        PriceInputs(
            height=dims.height if dims else 0,
            width=dims.width if dims else 0,
            rate_per_square_inch=rate_per_square_inch,
            material_costs=material_costs,
        )
    )
