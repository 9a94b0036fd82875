"""Pydantic v2 models for painting records, drafts and uploads."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Union

from pydantic import BaseModel, Field, field_serializer, field_validator

from atelier.config import (
    CURRENCY_SYMBOL,
    ENQUIRE_PRICE,
    MAX_IMAGE_VERSIONS,
    PLACEHOLDER_IMAGE,
)
from atelier.services import dimensions as dimension_parser


# ---------------------------------------------------------------------------
# Price variant
# ---------------------------------------------------------------------------

class FixedPrice(BaseModel):
    """A listed price."""

    amount: float = Field(gt=0)

    def to_storage(self) -> float:
        return self.amount

    def display(self) -> str | None:
        if self.amount.is_integer():
            return f"{CURRENCY_SYMBOL}{int(self.amount)}"
        return f"{CURRENCY_SYMBOL}{self.amount:.2f}"


class EnquirePrice(BaseModel):
    """"Contact for price"."""

    def to_storage(self) -> str:
        return ENQUIRE_PRICE

    def display(self) -> str | None:
        return ENQUIRE_PRICE


class UnsetPrice(BaseModel):
    """Not for sale, or price withheld."""

    def to_storage(self) -> None:
        return None

    def display(self) -> str | None:
        return None


Price = Union[FixedPrice, EnquirePrice, UnsetPrice]


def parse_price(raw: Any) -> Price:
    """Read a stored or submitted price.

    Accepts a positive number, a numeric string, ``"Enquire"`` (any case),
    or ``None`` / blank for no price.
    """
    if isinstance(raw, (FixedPrice, EnquirePrice, UnsetPrice)):
        return raw
    if raw is None:
        return UnsetPrice()
    if isinstance(raw, bool):
        raise ValueError("Price must be a positive number or 'Enquire'.")

    if isinstance(raw, str):
        text = raw.strip().lstrip(CURRENCY_SYMBOL).strip()
        if not text:
            return UnsetPrice()
        if text.lower() == ENQUIRE_PRICE.lower():
            return EnquirePrice()
        try:
            raw = float(text)
        except ValueError as exc:
            raise ValueError("Price must be a positive number or 'Enquire'.") from exc

    amount = float(raw)
    if math.isnan(amount) or math.isinf(amount) or amount <= 0:
        raise ValueError("Price must be a positive number or 'Enquire'.")
    return FixedPrice(amount=amount)


class _PricedModel(BaseModel):
    """Shared coercion of the ``price`` column and the status flags."""

    @field_validator("price", mode="before", check_fields=False)
    @classmethod
    def _parse_price(cls, v: Any) -> Price:
        return parse_price(v)

    @field_serializer("price", check_fields=False)
    def _serialize_price(self, price: Price) -> float | str | None:
        return price.to_storage()

    @field_validator("sold", "featured", "in_progress", mode="before", check_fields=False)
    @classmethod
    def _null_flag_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("image_versions", mode="before", check_fields=False)
    @classmethod
    def _null_versions_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class PaintingRecord(_PricedModel):
    """A painting as stored in the ``paintings`` table."""

    model_config = {"from_attributes": True}

    # Identity
    id: str
    title: str

    # Description
    description: str = ""
    medium: str = ""
    genre: str | None = None
    year: int | None = Field(default=None, gt=0)
    reference_credit: str | None = None

    # Images
    image_url: str = PLACEHOLDER_IMAGE
    image_versions: list[str] = Field(default_factory=list, max_length=MAX_IMAGE_VERSIONS)

    # Size
    dimensions: str = ""

    # Pricing
    price: Price = Field(default_factory=UnsetPrice)
    rate_per_square_inch: float | None = None
    material_costs: float | None = None

    # Status
    sold: bool = False
    featured: bool = False
    in_progress: bool = False

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime | None = None

    # -- Derived ------------------------------------------------------------

    @property
    def images(self) -> list[str]:
        """Primary image followed by the versions, in display order."""
        return [self.image_url, *self.image_versions]

    @property
    def is_available(self) -> bool:
        return not self.sold

    @property
    def has_placeholder_image(self) -> bool:
        return is_placeholder(self.image_url)

    @property
    def aspect_ratio(self) -> float:
        return dimension_parser.aspect_ratio(self.dimensions)

    @property
    def relative_scale(self) -> float:
        return dimension_parser.relative_scale(self.dimensions)

    def missing_fields(self) -> list[str]:
        """Required descriptive fields that are absent or unusable."""
        missing: list[str] = []
        if not self.title.strip():
            missing.append("title")
        if not self.description.strip():
            missing.append("description")
        if not self.medium.strip():
            missing.append("medium")
        if dimension_parser.parse_dimensions(self.dimensions) is None:
            missing.append("dimensions")
        if self.year is None:
            missing.append("year")
        if self.has_placeholder_image:
            missing.append("image_url")
        return missing

    @property
    def needs_attention(self) -> bool:
        return bool(self.missing_fields())

    @property
    def details_line(self) -> str:
        """One-line summary quoted in inquiry and offer emails."""
        parts = [str(self.year) if self.year else "", self.medium, self.dimensions]
        line = ", ".join(p for p in parts if p)
        shown = self.price.display()
        if isinstance(self.price, FixedPrice):
            line = f"{line}, {shown}" if line else shown
        return line

    def to_row(self) -> dict:
        """Row payload for the document store."""
        return self.model_dump(mode="json")


def is_placeholder(url: str | None) -> bool:
    return not url or "placeholder" in url


class PaintingDraft(_PricedModel):
    """Admin "add painting" form input. Checked by the submission workflow."""

    title: str = ""
    description: str = ""
    dimensions: str = ""
    medium: str = ""
    genre: str | None = None
    year: int | None = None
    price: Price = Field(default_factory=UnsetPrice)
    sold: bool = False
    featured: bool = False
    in_progress: bool = False
    reference_credit: str | None = None
    rate_per_square_inch: float | None = None
    material_costs: float | None = None


class PaintingChanges(_PricedModel):
    """Partial update. Only fields that were explicitly set are applied."""

    title: str | None = None
    description: str | None = None
    dimensions: str | None = None
    medium: str | None = None
    genre: str | None = None
    year: int | None = None
    price: Price = Field(default_factory=UnsetPrice)
    sold: bool | None = None
    featured: bool | None = None
    in_progress: bool | None = None
    reference_credit: str | None = None
    rate_per_square_inch: float | None = None
    material_costs: float | None = None
    image_versions: list[str] | None = None

    def applied(self) -> dict:
        """Storage-ready dict of the supplied fields."""
        return self.model_dump(mode="json", exclude_unset=True)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

class ImageUpload(BaseModel):
    """An image file received from the admin form."""

    filename: str
    content_type: str = "image/jpeg"
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)
