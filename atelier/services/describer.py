"""
Painting description drafting.

Sends the painting photo, medium, size and the artist's notes to Gemini
and returns gallery copy the operator can edit before saving. When the
model is unavailable or errors out, a templated description is returned
instead so the form is never blocked.
"""

from __future__ import annotations

import base64
import logging

from google import genai

from atelier.config import (
    DESCRIPTION_FALLBACK_TAIL,
    DESCRIPTION_PROMPT,
    GEMINI_API_KEY,
    GEMINI_MODEL,
)
from atelier.services.dimensions import parse_dimensions
from atelier.storage.r2_client import resize_for_prompt

logger = logging.getLogger(__name__)


def fallback_description(medium: str = "", dimensions: str = "", notes: str = "") -> str:
    """Templated description built from the form fields alone."""
    notes = notes.strip()
    if notes:
        body = notes[len("this piece"):].strip() if notes.lower().startswith("this piece") else notes
        text = f"This piece {body}"
    else:
        text = "This piece showcases the artist's unique style and technique."

    if medium.strip():
        text += f" Created using {medium.strip().lower()},"

    dims = parse_dimensions(dimensions)
    if dims is not None:
        text += f" this {dims.height:g} x {dims.width:g} inch work"

    return f"{text} {DESCRIPTION_FALLBACK_TAIL}"


class PaintingDescriber:
    """Gemini-backed description writer."""

    def __init__(self, api_key: str = GEMINI_API_KEY, model: str = GEMINI_MODEL, client=None):
        self.model = model
        self.client = client
        if self.client is None and api_key:
            self.client = genai.Client(api_key=api_key)

    async def describe(
        self,
        image_bytes: bytes | None,
        medium: str = "",
        dimensions: str = "",
        notes: str = "",
    ) -> str:
        if self.client is None or not image_bytes:
            return fallback_description(medium, dimensions, notes)

        prompt = DESCRIPTION_PROMPT.format(
            medium=medium or "unknown",
            dimensions=dimensions or "unknown",
            notes=notes or "none",
        )

        try:
            small = resize_for_prompt(image_bytes, max_size=512)
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[
                    {
                        "parts": [
                            {
                                "inline_data": {
                                    "mime_type": "image/jpeg",
                                    "data": base64.b64encode(small).decode("utf-8"),
                                }
                            },
                            {"text": prompt},
                        ],
                    }
                ],
            )
        except Exception as exc:
            logger.error("Description generation failed: %s", exc, exc_info=True)
            return fallback_description(medium, dimensions, notes)

        text = (response.text or "").strip()
        if not text:
            logger.warning("Gemini returned an empty description; using template.")
            return fallback_description(medium, dimensions, notes)
        return text
