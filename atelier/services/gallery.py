"""
Gallery filtering and pagination.

Takes the full painting collection (already ordered by the caller, usually
most-recently-updated first) and narrows it with independent predicates.
Predicates are combined with logical AND and never reorder records, so
the same filter applied twice, or in any order, yields the same result.
Pagination is a separate window over the filtered list.
"""

from __future__ import annotations

from typing import Callable, Iterable, Literal

from pydantic import BaseModel, field_validator

from atelier.config import FILTER_ALL, PAINTINGS_PER_PAGE, UNCATEGORIZED_GENRE
from atelier.models.painting import FixedPrice, EnquirePrice, PaintingRecord

Predicate = Callable[[PaintingRecord], bool]
Availability = Literal["all", "available", "sold"]


class GalleryFilter(BaseModel):
    """Active filters. ``None`` (or "All") means the filter is off."""

    genre: str | None = None
    availability: Availability = "all"
    featured: bool | None = None
    in_progress: bool | None = None
    year: int | None = None
    search: str | None = None
    needs_attention: bool | None = None

    @field_validator("genre", "search", mode="before")
    @classmethod
    def _all_is_unset(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        if not v or v.lower() == FILTER_ALL.lower():
            return None
        return v

    @field_validator("availability", mode="before")
    @classmethod
    def _lower_availability(cls, v):
        return str(v).strip().lower() if v else "all"


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def genre_is(genre: str) -> Predicate:
    if genre == UNCATEGORIZED_GENRE:
        return lambda p: not p.genre or p.genre == UNCATEGORIZED_GENRE
    return lambda p: p.genre == genre


def availability_is(availability: Availability) -> Predicate:
    if availability == "sold":
        return lambda p: p.sold
    if availability == "available":
        return lambda p: not p.sold
    return lambda p: True


def featured_is(value: bool) -> Predicate:
    return lambda p: p.featured == value


def in_progress_is(value: bool) -> Predicate:
    return lambda p: p.in_progress == value


def year_is(year: int) -> Predicate:
    return lambda p: p.year == year


def matches_text(query: str) -> Predicate:
    needle = query.lower()

    def _match(p: PaintingRecord) -> bool:
        return any(
            needle in (field or "").lower()
            for field in (p.title, p.description, p.medium)
        )

    return _match


def needs_attention_is(value: bool) -> Predicate:
    return lambda p: p.needs_attention == value


def build_predicates(flt: GalleryFilter) -> list[Predicate]:
    """One predicate per active filter; inactive filters contribute none."""
    predicates: list[Predicate] = []

    if flt.genre is not None:
        predicates.append(genre_is(flt.genre))
    if flt.availability != "all":
        predicates.append(availability_is(flt.availability))
    if flt.featured is not None:
        predicates.append(featured_is(flt.featured))
    if flt.in_progress is not None:
        predicates.append(in_progress_is(flt.in_progress))
    if flt.year is not None:
        predicates.append(year_is(flt.year))
    if flt.search is not None:
        predicates.append(matches_text(flt.search))
    if flt.needs_attention is not None:
        predicates.append(needs_attention_is(flt.needs_attention))

    return predicates


def apply_filters(
    records: Iterable[PaintingRecord],
    predicates: Iterable[Predicate],
) -> list[PaintingRecord]:
    """Records satisfying every predicate, in input order."""
    predicates = list(predicates)
    return [r for r in records if all(pred(r) for pred in predicates)]


def filter_paintings(records: Iterable[PaintingRecord], flt: GalleryFilter) -> list[PaintingRecord]:
    return apply_filters(records, build_predicates(flt))


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

class PageWindow(BaseModel):
    """How many filtered records are currently shown."""

    page_size: int = PAINTINGS_PER_PAGE
    visible: int = PAINTINGS_PER_PAGE

    def take(self, records: list[PaintingRecord]) -> list[PaintingRecord]:
        return records[: self.visible]

    def load_more(self) -> None:
        self.visible += self.page_size

    def show_less(self) -> None:
        self.visible = self.page_size

    def has_more(self, total: int) -> bool:
        return self.visible < total


# ---------------------------------------------------------------------------
# Page views
# ---------------------------------------------------------------------------

class Section(BaseModel):
    """One paginated block of cards on a page."""

    paintings: list[PaintingRecord]
    shown: int
    total: int
    has_more: bool


def paginate(records: list[PaintingRecord], window: PageWindow) -> Section:
    page = window.take(records)
    return Section(
        paintings=page,
        shown=len(page),
        total=len(records),
        has_more=window.has_more(len(records)),
    )


def build_home_sections(
    records: list[PaintingRecord],
    flt: GalleryFilter,
    all_window: PageWindow | None = None,
    in_progress_window: PageWindow | None = None,
    featured_window: PageWindow | None = None,
) -> dict[str, Section]:
    """The home page's three sections.

    Featured works ignore the visitor's filters; finished works and works in
    progress are filtered and paginated independently.
    """
    finished = apply_filters(records, [in_progress_is(False)])
    in_progress = apply_filters(records, [in_progress_is(True)])
    featured = apply_filters(finished, [featured_is(True)])

    predicates = build_predicates(flt)

    return {
        "featured": paginate(featured, featured_window or PageWindow()),
        "all": paginate(apply_filters(finished, predicates), all_window or PageWindow()),
        "in_progress": paginate(
            apply_filters(in_progress, predicates), in_progress_window or PageWindow()
        ),
    }


def build_shop_listing(records: list[PaintingRecord]) -> list[PaintingRecord]:
    """Finished, unsold works that have a price or invite an enquiry."""
    return apply_filters(
        records,
        [
            availability_is("available"),
            in_progress_is(False),
            lambda p: isinstance(p.price, (FixedPrice, EnquirePrice)),
        ],
    )
