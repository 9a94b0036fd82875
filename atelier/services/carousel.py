"""
Carousel navigation, independent of rendering.

``ImageCarousel`` browses the images of one painting; ``PaintingNavigator``
is the detail page's previous/next-painting control over the whole
collection, keyed by record id. Both wrap around at either end.
"""

from __future__ import annotations

from typing import Any

from atelier.models.painting import PaintingRecord


class Carousel:
    """An ordered list of items with a current position."""

    def __init__(self, items: list[Any] | None = None, index: int = 0):
        self.items: list[Any] = list(items or [])
        self.index = index if 0 <= index < len(self.items) else 0

    def __len__(self) -> int:
        return len(self.items)

    @property
    def current(self) -> Any | None:
        if not self.items:
            return None
        return self.items[self.index]

    def next(self) -> Any | None:
        if self.items:
            self.index = (self.index + 1) % len(self.items)
        return self.current

    def previous(self) -> Any | None:
        if self.items:
            self.index = (self.index - 1) % len(self.items)
        return self.current

    def jump_to(self, index: int) -> Any | None:
        """Move to *index*; out-of-range values are ignored."""
        if 0 <= index < len(self.items):
            self.index = index
        return self.current

    def add(self, item: Any) -> None:
        was_empty = not self.items
        self.items.append(item)
        if was_empty:
            self.index = 0

    def remove(self, index: int) -> None:
        """Drop the item at *index*, keeping the position valid."""
        if not 0 <= index < len(self.items):
            return

        del self.items[index]

        if index < self.index:
            # Keep showing the same item.
            self.index -= 1
        elif index == self.index:
            self.index = max(self.index - 1, 0)

        if not self.items:
            self.index = 0


class ImageCarousel(Carousel):
    """Primary image plus versions of a single painting."""

    @classmethod
    def for_painting(cls, painting: PaintingRecord) -> "ImageCarousel":
        return cls(painting.images)


class PaintingNavigator(Carousel):
    """Previous/next painting navigation keyed by record id."""

    def __init__(self, ids: list[str], current_id: str | None = None):
        super().__init__(ids)
        if current_id is not None:
            self.jump_to_id(current_id)

    @classmethod
    def for_collection(
        cls, paintings: list[PaintingRecord], current_id: str | None = None
    ) -> "PaintingNavigator":
        return cls([p.id for p in paintings], current_id)

    def jump_to_id(self, painting_id: str) -> str | None:
        if painting_id in self.items:
            self.index = self.items.index(painting_id)
        return self.current

    def _peek(self, step: int) -> str | None:
        if not self.items:
            return None
        return self.items[(self.index + step) % len(self.items)]

    def previous_id(self) -> str | None:
        """Id of the painting before the current one, without moving."""
        return self._peek(-1)

    def next_id(self) -> str | None:
        """Id of the painting after the current one, without moving."""
        return self._peek(1)
