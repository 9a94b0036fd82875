"""Public gallery API routes.

Listing pages (home, gallery, shop) and the painting detail view are
served from the view cache; contact, inquiry and offer forms are relayed
to the studio by email.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Body, Depends, Query, Request

from atelier.api.deps import get_context
from atelier.config import DETAIL_REFRESH_SECONDS, GENRES, PAINTINGS_PER_PAGE, detail_view
from atelier.context import AppContext
from atelier.errors import NotFoundError
from atelier.models.painting import PaintingRecord
from atelier.services.carousel import PaintingNavigator
from atelier.services.gallery import (
    GalleryFilter,
    PageWindow,
    Section,
    build_home_sections,
    build_shop_listing,
    filter_paintings,
    paginate,
)
from atelier.services.notifications import parse_form, send_contact, send_inquiry, send_offer

router = APIRouter(prefix="/api", tags=["gallery"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def painting_card(painting: PaintingRecord) -> dict:
    """Stored fields plus the derived values every card needs."""
    return {
        **painting.model_dump(mode="json"),
        "display_price": painting.price.display(),
        "is_available": painting.is_available,
        "aspect_ratio": painting.aspect_ratio,
        "relative_scale": painting.relative_scale,
    }


def section_payload(section: Section) -> dict:
    return {
        "paintings": [painting_card(p) for p in section.paintings],
        "shown": section.shown,
        "total": section.total,
        "has_more": section.has_more,
    }


def cache_key(path: str, request: Request) -> str:
    query = request.url.query
    return f"{path}?{query}" if query else path


async def load_paintings(ctx: AppContext) -> list[PaintingRecord]:
    return await asyncio.to_thread(ctx.store.get_all)


async def load_painting(ctx: AppContext, painting_id: str) -> PaintingRecord:
    painting = await asyncio.to_thread(ctx.store.get_by_id, painting_id)
    if painting is None:
        raise NotFoundError(painting_id)
    return painting


async def cached(ctx: AppContext, key: str, build) -> dict:
    payload = ctx.cache.get(key)
    if payload is None:
        payload = await build()
        ctx.cache.set(key, payload)
    return payload


# ---------------------------------------------------------------------------
# GET /api/paintings
# ---------------------------------------------------------------------------

@router.get("/paintings")
async def list_paintings(
    request: Request,
    genre: str | None = None,
    availability: str = "all",
    featured: bool | None = None,
    in_progress: bool | None = None,
    year: int | None = None,
    search: str | None = None,
    limit: int = Query(PAINTINGS_PER_PAGE, ge=1),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """The gallery page: filtered collection, first *limit* cards."""
    flt = parse_form(
        GalleryFilter,
        {
            "genre": genre,
            "availability": availability,
            "featured": featured,
            "in_progress": in_progress,
            "year": year,
            "search": search,
        },
    )

    async def build() -> dict:
        records = filter_paintings(await load_paintings(ctx), flt)
        return section_payload(paginate(records, PageWindow(visible=limit)))

    return await cached(ctx, cache_key("/gallery", request), build)


# ---------------------------------------------------------------------------
# GET /api/home
# ---------------------------------------------------------------------------

@router.get("/home")
async def home(
    request: Request,
    genre: str | None = None,
    availability: str = "all",
    year: int | None = None,
    search: str | None = None,
    limit: int = Query(PAINTINGS_PER_PAGE, ge=1),
    in_progress_limit: int = Query(PAINTINGS_PER_PAGE, ge=1),
    featured_limit: int = Query(PAINTINGS_PER_PAGE, ge=1),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """Featured works, then finished works and works in progress, each paginated on its own."""
    flt = parse_form(
        GalleryFilter,
        {"genre": genre, "availability": availability, "year": year, "search": search},
    )

    async def build() -> dict:
        sections = build_home_sections(
            await load_paintings(ctx),
            flt,
            all_window=PageWindow(visible=limit),
            in_progress_window=PageWindow(visible=in_progress_limit),
            featured_window=PageWindow(visible=featured_limit),
        )
        return {name: section_payload(section) for name, section in sections.items()}

    return await cached(ctx, cache_key("/", request), build)


# ---------------------------------------------------------------------------
# GET /api/shop
# ---------------------------------------------------------------------------

@router.get("/shop")
async def shop(ctx: AppContext = Depends(get_context)) -> dict:
    async def build() -> dict:
        listing = build_shop_listing(await load_paintings(ctx))
        return {"paintings": [painting_card(p) for p in listing], "total": len(listing)}

    return await cached(ctx, "/shop", build)


@router.get("/genres")
async def genres() -> dict:
    return {"genres": GENRES}


# ---------------------------------------------------------------------------
# GET /api/paintings/{painting_id}
# ---------------------------------------------------------------------------

@router.get("/paintings/{painting_id}")
async def painting_detail(painting_id: str, ctx: AppContext = Depends(get_context)) -> dict:
    """Detail view model. Clients re-fetch every ``refresh_interval_seconds``."""

    async def build() -> dict:
        painting = await load_painting(ctx, painting_id)
        navigator = PaintingNavigator.for_collection(await load_paintings(ctx))
        in_collection = painting_id in navigator.items
        if in_collection:
            navigator.jump_to_id(painting_id)
        return {
            "painting": painting_card(painting),
            "images": painting.images,
            "aspect_ratio": painting.aspect_ratio,
            "show_purchase_actions": painting.is_available,
            "previous_id": navigator.previous_id() if in_collection else None,
            "next_id": navigator.next_id() if in_collection else None,
            "refresh_interval_seconds": DETAIL_REFRESH_SECONDS,
        }

    return await cached(ctx, detail_view(painting_id), build)


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------

@router.post("/contact")
async def contact(payload: dict = Body(...), ctx: AppContext = Depends(get_context)) -> dict:
    await asyncio.to_thread(send_contact, ctx.mailer, payload)
    return {"success": True, "message": "Your message has been sent. We'll get back to you soon."}


@router.post("/paintings/{painting_id}/inquiry")
async def painting_inquiry(
    painting_id: str,
    payload: dict = Body(...),
    ctx: AppContext = Depends(get_context),
) -> dict:
    painting = await load_painting(ctx, painting_id)
    await asyncio.to_thread(send_inquiry, ctx.mailer, painting, payload)
    return {"success": True, "message": "Your inquiry has been sent."}


@router.post("/paintings/{painting_id}/offer")
async def painting_offer(
    painting_id: str,
    payload: dict = Body(...),
    ctx: AppContext = Depends(get_context),
) -> dict:
    painting = await load_painting(ctx, painting_id)
    await asyncio.to_thread(send_offer, ctx.mailer, painting, payload)
    return {"success": True, "message": "Your offer has been sent."}
