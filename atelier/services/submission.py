"""
Admin painting submission workflow: the write path of the gallery.

Every create/update goes through the same per-submission state machine::

    Idle -> Validating -> Uploading(0-100) -> Persisting -> Success | Failed

``Uploading`` is skipped when no image changed. After ``Failed`` the
submission returns to ``Idle`` with the error and the submitted form data
kept, so the operator can retry without retyping anything.

Ordering rules:
    - New images are uploaded (and their URLs confirmed) before the record
      is written.
    - Replaced or removed images are deleted only after the record write
      succeeded. Failing to delete an orphan is logged, never raised.
    - If the record write fails, images uploaded for that submission are
      discarded and the stored record is left untouched.
    - Every successful write invalidates the cached listing views and the
      painting's detail page.
"""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from atelier.config import (
    ADMIN_HOME,
    DETAIL_VIEW_PREFIX,
    LISTING_VIEWS,
    MAX_IMAGE_SIZE_BYTES,
    MAX_IMAGE_VERSIONS,
    SIMULATED_UPLOAD_STEPS,
)
from atelier.context import AppContext
from atelier.errors import (
    AtelierError,
    AuthRequired,
    NotFoundError,
    PersistenceError,
    UploadError,
    ValidationError,
)
from atelier.models.painting import (
    ImageUpload,
    PaintingChanges,
    PaintingDraft,
    PaintingRecord,
    is_placeholder,
)
from atelier.models.session import Session
from atelier.services.dimensions import parse_dimensions

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Submission state
# ---------------------------------------------------------------------------

class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    UPLOADING = "uploading"
    PERSISTING = "persisting"
    SUCCESS = "success"
    FAILED = "failed"


class Transition(BaseModel):
    state: SubmissionState
    progress: int = 0
    status: str = ""


class Submission:
    """Progress and outcome of one admin form submission."""

    def __init__(self, on_change: Callable[[Transition], None] | None = None):
        self.state = SubmissionState.IDLE
        self.progress = 0
        self.status = ""
        self.error: AtelierError | None = None
        self.form: dict = {}
        self.painting_id: str | None = None
        self.redirect_to: str | None = None
        self.history: list[Transition] = []
        self._on_change = on_change

    def _move(self, state: SubmissionState, progress: int | None = None, status: str = "") -> None:
        self.state = state
        if progress is not None:
            self.progress = max(0, min(100, progress))
        self.status = status
        transition = Transition(state=state, progress=self.progress, status=status)
        self.history.append(transition)
        if self._on_change is not None:
            self._on_change(transition)

    def begin(self, form: dict) -> None:
        self.form = form
        self.error = None
        self.painting_id = None
        self.redirect_to = None
        self._move(SubmissionState.VALIDATING, 0, "Checking form...")

    def uploading(self, progress: int, status: str) -> None:
        self._move(SubmissionState.UPLOADING, progress, status)

    def persisting(self) -> None:
        self._move(SubmissionState.PERSISTING, status="Saving painting...")

    def succeed(self, painting_id: str) -> None:
        self.painting_id = painting_id
        self.redirect_to = ADMIN_HOME
        self._move(SubmissionState.SUCCESS, 100, "Saved")

    def fail(self, error: AtelierError) -> None:
        self.error = error
        self._move(SubmissionState.FAILED, status=error.message)
        # Form data and error stay available for a retry.
        self._move(SubmissionState.IDLE, 0, "")

    @property
    def states(self) -> list[SubmissionState]:
        return [t.state for t in self.history]

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "progress": self.progress,
            "status": self.status,
            "error": self.error.message if self.error else None,
            "painting_id": self.painting_id,
            "redirect_to": self.redirect_to,
            "history": [t.model_dump(mode="json") for t in self.history],
        }


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def new_painting_id(title: str) -> str:
    """URL slug of the title plus a random suffix, so ids are never reused."""
    slug = re.sub(r"[^\w-]+", "", re.sub(r"\s+", "-", title.strip().lower()))[:48].strip("-")
    return f"{slug or 'painting'}-{uuid.uuid4().hex[:8]}"


def validate_draft(
    draft: PaintingDraft,
    primary_image: ImageUpload | None,
    additional_images: list[ImageUpload],
) -> None:
    missing: list[str] = []
    if not draft.title.strip():
        missing.append("title")
    if parse_dimensions(draft.dimensions) is None:
        missing.append("dimensions")
    if draft.year is None or draft.year <= 0:
        missing.append("year")
    if primary_image is None:
        missing.append("image")
    if len(additional_images) > MAX_IMAGE_VERSIONS:
        missing.append("image_versions")
    if missing:
        raise ValidationError(missing)


def validate_changes(changes: PaintingChanges) -> None:
    supplied = changes.model_fields_set
    invalid: list[str] = []
    if "title" in supplied and not (changes.title or "").strip():
        invalid.append("title")
    if "dimensions" in supplied and parse_dimensions(changes.dimensions) is None:
        invalid.append("dimensions")
    if "year" in supplied and changes.year is not None and changes.year <= 0:
        invalid.append("year")
    if invalid:
        raise ValidationError(invalid)


def check_image_sizes(images: list[ImageUpload]) -> None:
    for image in images:
        if image.size > MAX_IMAGE_SIZE_BYTES:
            raise UploadError(
                f"Image {image.filename} is too large. Maximum size is 5MB.",
                too_large=True,
            )


def require_session(session: Session | None) -> Session:
    if session is None:
        raise AuthRequired()
    return session


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

class PaintingWorkflow:
    """Create, update and delete paintings on behalf of a signed-in admin."""

    def __init__(self, ctx: AppContext):
        self.ctx = ctx

    async def _call(self, fn, *args):
        return await asyncio.to_thread(fn, *args)

    async def _upload_all(self, images: list[ImageUpload], submission: Submission) -> list[str]:
        """Upload *images* in order, reporting progress per completed file."""
        if not images:
            return []

        total = len(images)
        urls: list[str] = []
        if total == 1:
            # The storage client reports no intermediate events for one file.
            for percent, label in SIMULATED_UPLOAD_STEPS:
                submission.uploading(percent, label)
        else:
            submission.uploading(0, "Preparing upload...")
        try:
            for i, image in enumerate(images, start=1):
                url = await self._call(self.ctx.images.upload, image)
                urls.append(url)
                submission.uploading(round(100 * i / total), f"Uploaded image {i} of {total}")
        except AtelierError:
            await self._discard(urls)
            raise
        return urls

    async def _discard(self, urls: list[str]) -> None:
        """Best-effort deletion of stored images."""
        for url in urls:
            if is_placeholder(url):
                continue
            try:
                await self._call(self.ctx.images.delete, url)
            except AtelierError as exc:
                logger.warning("[workflow] Could not delete image %s: %s", url, exc)

    def _invalidate(self) -> None:
        self.ctx.cache.invalidate(LISTING_VIEWS)
        self.ctx.cache.invalidate_prefix(DETAIL_VIEW_PREFIX)

    def _failed(self, submission: Submission, exc: AtelierError) -> None:
        submission.fail(exc)
        self.ctx.notify("Error", exc.message, level="error")

    # -----------------------------------------------------------------------
    # Create
    # -----------------------------------------------------------------------

    async def create(
        self,
        session: Session | None,
        draft: PaintingDraft,
        primary_image: ImageUpload | None,
        additional_images: list[ImageUpload] | None = None,
        submission: Submission | None = None,
    ) -> str:
        """Add a painting and return its new id."""
        submission = submission or Submission()
        additional = list(additional_images or [])
        submission.begin(draft.model_dump(mode="json"))

        try:
            require_session(session)
            validate_draft(draft, primary_image, additional)
            check_image_sizes([primary_image, *additional])

            urls = await self._upload_all([primary_image, *additional], submission)

            now = datetime.now(timezone.utc)
            record = PaintingRecord(
                id=new_painting_id(draft.title),
                image_url=urls[0],
                image_versions=urls[1:],
                created_at=now,
                updated_at=now,
                **draft.model_dump(exclude={"price"}),
                price=draft.price,
            )

            submission.persisting()
            try:
                painting_id = await self._call(self.ctx.store.create, record)
            except PersistenceError:
                await self._discard(urls)
                raise
        except AtelierError as exc:
            self._failed(submission, exc)
            raise

        self._invalidate()
        submission.succeed(painting_id)
        self.ctx.notify("Painting added", f"{record.title} is now in the gallery.", level="success")
        logger.info("[workflow] Created painting %s", painting_id)
        return painting_id

    # -----------------------------------------------------------------------
    # Update
    # -----------------------------------------------------------------------

    async def update(
        self,
        session: Session | None,
        painting_id: str,
        changes: PaintingChanges,
        new_primary_image: ImageUpload | None = None,
        new_additional_images: list[ImageUpload] | None = None,
        submission: Submission | None = None,
    ) -> str:
        """Merge *changes* onto an existing painting; unspecified fields stay as they are."""
        submission = submission or Submission()
        additional = list(new_additional_images or [])
        submission.begin(changes.applied())

        try:
            require_session(session)
            existing = await self._call(self.ctx.store.get_by_id, painting_id)
            if existing is None:
                raise NotFoundError(painting_id)

            validate_changes(changes)

            updates = changes.applied()
            versions_supplied = "image_versions" in changes.model_fields_set
            retained = list(changes.image_versions or []) if versions_supplied else list(existing.image_versions)
            if any(url not in existing.image_versions for url in retained):
                raise ValidationError(["image_versions"], "Only existing image versions can be kept.")
            if len(retained) + len(additional) > MAX_IMAGE_VERSIONS:
                raise ValidationError(
                    ["image_versions"],
                    f"A painting can have at most {MAX_IMAGE_VERSIONS} additional images.",
                )

            new_images = ([new_primary_image] if new_primary_image else []) + additional
            check_image_sizes(new_images)

            urls = await self._upload_all(new_images, submission)
            new_version_urls = urls
            if new_primary_image is not None:
                updates["image_url"] = urls[0]
                new_version_urls = urls[1:]
            if versions_supplied or new_version_urls:
                updates["image_versions"] = retained + new_version_urls

            submission.persisting()
            try:
                await self._call(self.ctx.store.update, painting_id, updates)
            except PersistenceError:
                await self._discard(urls)
                raise
        except AtelierError as exc:
            self._failed(submission, exc)
            raise

        # The record now points at the new images; old ones are orphans.
        obsolete: list[str] = []
        if new_primary_image is not None and existing.image_url != updates["image_url"]:
            obsolete.append(existing.image_url)
        kept_versions = updates.get("image_versions", existing.image_versions)
        obsolete.extend(v for v in existing.image_versions if v not in kept_versions)
        await self._discard(obsolete)

        self._invalidate()
        submission.succeed(painting_id)
        self.ctx.notify("Painting updated", f"Changes to {existing.title} were saved.", level="success")
        logger.info("[workflow] Updated painting %s (%s)", painting_id, ", ".join(sorted(updates)))
        return painting_id

    # -----------------------------------------------------------------------
    # Delete
    # -----------------------------------------------------------------------

    async def delete(self, session: Session | None, painting_id: str) -> str:
        """Permanently remove a painting and its stored images."""
        try:
            require_session(session)
            existing = await self._call(self.ctx.store.get_by_id, painting_id)
            if existing is None:
                raise NotFoundError(painting_id)
            await self._call(self.ctx.store.delete, painting_id)
        except AtelierError as exc:
            self.ctx.notify("Error", exc.message, level="error")
            raise

        await self._discard(existing.images)

        self._invalidate()
        self.ctx.notify("Painting deleted", f"{existing.title} was removed.", level="success")
        logger.info("[workflow] Deleted painting %s", painting_id)
        return painting_id
