"""Admin API routes: sign-in, painting management and drafting helpers.

Every route except login/logout needs a valid session, checked before any
form field or upload is read. Painting writes go through
``PaintingWorkflow`` and respond with the submission's state history and
the queued operator notices.
"""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile
from pydantic import BaseModel

from atelier.api.deps import get_context, require_admin, session_token
from atelier.api.routes_gallery import painting_card
from atelier.config import ADMIN_HOME, ALLOWED_IMAGE_TYPES, CURRENCY_SYMBOL, LOGIN_VIEW, SESSION_COOKIE
from atelier.context import AppContext
from atelier.errors import UploadError, ValidationError
from atelier.models.painting import ImageUpload, PaintingChanges, PaintingDraft
from atelier.models.session import Session
from atelier.services.dimensions import format_dimensions
from atelier.services.gallery import GalleryFilter, filter_paintings
from atelier.services.notifications import parse_form
from atelier.services.pricing import PriceInputs, coerce_amount, suggest_price
from atelier.services.submission import PaintingWorkflow, Submission

router = APIRouter(prefix="/api/admin", tags=["admin"])


class LoginRequest(BaseModel):
    email: str
    password: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _read_image(upload: UploadFile | None) -> ImageUpload | None:
    """Read an uploaded file; an empty file input counts as no image."""
    if upload is None or not upload.filename:
        return None

    content_type = upload.content_type or ""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise UploadError("Invalid image format. Use JPEG, PNG or WebP.")

    return ImageUpload(filename=upload.filename, content_type=content_type, data=await upload.read())


async def _read_images(uploads: list[UploadFile] | None) -> list[ImageUpload]:
    images = [await _read_image(u) for u in uploads or []]
    return [img for img in images if img is not None]


def _form_fields(**fields) -> dict:
    """Drop fields the form did not send; blank numeric inputs mean "no value"."""
    data = {k: v for k, v in fields.items() if v is not None}
    for key in ("year", "rate_per_square_inch", "material_costs"):
        if isinstance(data.get(key), str) and not data[key].strip():
            data[key] = None
    return data


def _compose_dimensions(data: dict, height: str | None, width: str | None) -> None:
    """Build ``dimensions`` from separate height and width inputs when given."""
    if height and width:
        h, w = coerce_amount(height), coerce_amount(width)
        if h <= 0 or w <= 0:
            raise ValidationError(["dimensions"], "Height and width must be positive numbers.")
        data["dimensions"] = format_dimensions(h, w)


def _submission_payload(painting_id: str, submission: Submission, ctx: AppContext) -> dict:
    return {
        "success": True,
        "id": painting_id,
        "redirect": submission.redirect_to,
        "submission": submission.to_dict(),
        "notices": [n.model_dump(mode="json") for n in ctx.drain_notices()],
    }


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@router.post("/login")
async def login(body: LoginRequest, response: Response, ctx: AppContext = Depends(get_context)) -> dict:
    session = await asyncio.to_thread(ctx.auth.sign_in, body.email, body.password)
    response.set_cookie(SESSION_COOKIE, session.access_token, httponly=True, samesite="lax")
    return {
        "success": True,
        "redirect": ADMIN_HOME,
        "access_token": session.access_token,
        "user": {"id": session.user_id, "email": session.email},
    }


@router.post("/logout")
async def logout(request: Request, response: Response, ctx: AppContext = Depends(get_context)) -> dict:
    await asyncio.to_thread(ctx.auth.sign_out, session_token(request))
    ctx.end_session()
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True, "redirect": LOGIN_VIEW}


# ---------------------------------------------------------------------------
# GET /api/admin/paintings
# ---------------------------------------------------------------------------

@router.get("/paintings")
async def admin_paintings(
    genre: str | None = None,
    availability: str = "all",
    featured: bool | None = None,
    in_progress: bool | None = None,
    search: str | None = None,
    needs_attention: bool | None = None,
    session: Session = Depends(require_admin),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """Every painting, flagged with the fields it is still missing."""
    flt = parse_form(
        GalleryFilter,
        {
            "genre": genre,
            "availability": availability,
            "featured": featured,
            "in_progress": in_progress,
            "search": search,
            "needs_attention": needs_attention,
        },
    )
    records = filter_paintings(await asyncio.to_thread(ctx.store.get_all), flt)
    return {
        "paintings": [
            {
                **painting_card(p),
                "needs_attention": p.needs_attention,
                "missing_fields": p.missing_fields(),
            }
            for p in records
        ],
        "total": len(records),
        "notices": [n.model_dump(mode="json") for n in ctx.drain_notices()],
    }


# ---------------------------------------------------------------------------
# POST /api/admin/paintings
# ---------------------------------------------------------------------------

@router.post("/paintings")
async def create_painting(
    title: str = Form(""),
    description: str = Form(""),
    dimensions: str = Form(""),
    height: str | None = Form(None),
    width: str | None = Form(None),
    medium: str = Form(""),
    genre: str | None = Form(None),
    year: str = Form(""),
    price: str = Form(""),
    sold: bool = Form(False),
    featured: bool = Form(False),
    in_progress: bool = Form(False),
    reference_credit: str | None = Form(None),
    rate_per_square_inch: str = Form(""),
    material_costs: str = Form(""),
    image: UploadFile | None = File(None),
    additional_images: list[UploadFile] | None = File(None),
    session: Session = Depends(require_admin),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """Add a painting from the multipart admin form."""
    data = _form_fields(
        title=title,
        description=description,
        dimensions=dimensions,
        medium=medium,
        genre=genre or None,
        year=year,
        price=price,
        sold=sold,
        featured=featured,
        in_progress=in_progress,
        reference_credit=reference_credit or None,
        rate_per_square_inch=rate_per_square_inch,
        material_costs=material_costs,
    )
    _compose_dimensions(data, height, width)
    draft = parse_form(PaintingDraft, data)

    primary = await _read_image(image)
    additional = await _read_images(additional_images)

    submission = Submission()
    painting_id = await PaintingWorkflow(ctx).create(session, draft, primary, additional, submission)
    return _submission_payload(painting_id, submission, ctx)


# ---------------------------------------------------------------------------
# PATCH /api/admin/paintings/{painting_id}
# ---------------------------------------------------------------------------

@router.patch("/paintings/{painting_id}")
async def update_painting(
    painting_id: str,
    title: str | None = Form(None),
    description: str | None = Form(None),
    dimensions: str | None = Form(None),
    height: str | None = Form(None),
    width: str | None = Form(None),
    medium: str | None = Form(None),
    genre: str | None = Form(None),
    year: str | None = Form(None),
    price: str | None = Form(None),
    sold: bool | None = Form(None),
    featured: bool | None = Form(None),
    in_progress: bool | None = Form(None),
    reference_credit: str | None = Form(None),
    rate_per_square_inch: str | None = Form(None),
    material_costs: str | None = Form(None),
    image_versions: str | None = Form(None),
    image: UploadFile | None = File(None),
    additional_images: list[UploadFile] | None = File(None),
    session: Session = Depends(require_admin),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """Edit a painting. Only the fields present in the form are changed.

    ``image_versions`` is a JSON list of the existing version URLs to keep,
    in display order; omit it to keep them all.
    """
    data = _form_fields(
        title=title,
        description=description,
        dimensions=dimensions,
        medium=medium,
        genre=genre,
        year=year,
        price=price,
        sold=sold,
        featured=featured,
        in_progress=in_progress,
        reference_credit=reference_credit,
        rate_per_square_inch=rate_per_square_inch,
        material_costs=material_costs,
    )
    _compose_dimensions(data, height, width)
    if image_versions is not None:
        try:
            data["image_versions"] = json.loads(image_versions)
        except json.JSONDecodeError as exc:
            raise ValidationError(["image_versions"], "Image versions must be a JSON list.") from exc
    changes = parse_form(PaintingChanges, data)

    primary = await _read_image(image)
    additional = await _read_images(additional_images)

    submission = Submission()
    await PaintingWorkflow(ctx).update(session, painting_id, changes, primary, additional, submission)
    return _submission_payload(painting_id, submission, ctx)


# ---------------------------------------------------------------------------
# DELETE /api/admin/paintings/{painting_id}
# ---------------------------------------------------------------------------

@router.delete("/paintings/{painting_id}")
async def delete_painting(
    painting_id: str,
    session: Session = Depends(require_admin),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """Permanently delete a painting and its images."""
    await PaintingWorkflow(ctx).delete(session, painting_id)
    return {
        "success": True,
        "id": painting_id,
        "redirect": ADMIN_HOME,
        "notices": [n.model_dump(mode="json") for n in ctx.drain_notices()],
    }


# ---------------------------------------------------------------------------
# Drafting helpers
# ---------------------------------------------------------------------------

@router.post("/price/suggest")
async def price_suggestion(
    inputs: PriceInputs = Body(...),
    session: Session = Depends(require_admin),
) -> dict:
    """Advisory price from size, rate and material costs."""
    amount = suggest_price(inputs)
    return {"suggested_price": amount, "display": f"{CURRENCY_SYMBOL}{amount}"}


@router.post("/describe")
async def describe_painting(
    medium: str = Form(""),
    dimensions: str = Form(""),
    notes: str = Form(""),
    image: UploadFile | None = File(None),
    session: Session = Depends(require_admin),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """Draft gallery copy for the painting being edited."""
    upload = await _read_image(image)
    description = await ctx.describer.describe(
        upload.data if upload else None,
        medium=medium,
        dimensions=dimensions,
        notes=notes,
    )
    return {"description": description}
