"""
Cloudflare R2 storage client for Atelier.

Handles painting image upload and deletion through the R2-compatible
S3 API, plus the Pillow conversions used on the way in (WebP for the
gallery, small copies for the description model).
"""

from __future__ import annotations

import io
import logging
import re
import time
import uuid

import boto3
from botocore.config import Config
from PIL import Image, UnidentifiedImageError

from atelier.config import (
    CF_ACCOUNT_ID,
    IMAGE_FOLDER,
    MAX_STORED_IMAGE_SIDE,
    R2_ACCESS_KEY,
    R2_BUCKET,
    R2_PUBLIC_URL,
    R2_SECRET_KEY,
)
from atelier.errors import UploadError
from atelier.models.painting import ImageUpload, is_placeholder

logger = logging.getLogger(__name__)


def create_r2_client(
    account_id: str = CF_ACCOUNT_ID,
    access_key: str = R2_ACCESS_KEY,
    secret_key: str = R2_SECRET_KEY,
):
    """Boto3 S3 client configured for Cloudflare R2."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{account_id}.r2.cloudflarestorage.com",
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


# ---------------------------------------------------------------------------
# Image helpers
# ---------------------------------------------------------------------------

def _scale_down(img: Image.Image, max_size: int) -> Image.Image:
    w, h = img.size
    if max(w, h) > max_size:
        scale = max_size / max(w, h)
        img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)
    return img


def convert_to_webp(image_bytes: bytes, max_size: int = MAX_STORED_IMAGE_SIDE) -> bytes:
    """Open *image_bytes* with Pillow, resize so the longest side is at most
    *max_size* (maintaining aspect ratio), and return WebP-encoded bytes."""
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img = _scale_down(img.convert("RGB"), max_size)

        buf = io.BytesIO()
        img.save(buf, format="WEBP", quality=85)
        return buf.getvalue()
    except (UnidentifiedImageError, OSError) as exc:
        logger.error("[r2_client] convert_to_webp error: %s", exc)
        raise UploadError("The uploaded file is not a readable image.") from exc


def resize_for_prompt(image_bytes: bytes, max_size: int = 512) -> bytes:
    """Shrink an image for the description model, re-encoded as JPEG."""
    img = Image.open(io.BytesIO(image_bytes))
    img = _scale_down(img.convert("RGB"), max_size)

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=70)
    return buf.getvalue()


def safe_filename(name: str) -> str:
    """Replace anything outside ``[a-zA-Z0-9.]`` with underscores."""
    return re.sub(r"[^a-zA-Z0-9.]", "_", name) or "image"


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class ImageStorage:
    """Upload and delete painting images in an R2 bucket."""

    def __init__(self, s3_client, bucket: str = R2_BUCKET, public_url: str = R2_PUBLIC_URL):
        self.s3 = s3_client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")

    def get_image_url(self, key: str) -> str:
        """Return the public URL for an R2 object."""
        return f"{self.public_url}/{key}"

    def key_from_url(self, url: str) -> str | None:
        """R2 key of a public URL, or None for URLs outside this bucket."""
        prefix = f"{self.public_url}/"
        if not self.public_url or not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def build_key(self, filename: str, folder: str = IMAGE_FOLDER) -> str:
        stem = safe_filename(filename).rsplit(".", 1)[0]
        return f"{folder}/{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{stem}.webp"

    def upload(self, image: ImageUpload, folder: str = IMAGE_FOLDER) -> str:
        """Convert *image* to WebP, upload it and return its public URL."""
        webp_bytes = convert_to_webp(image.data)
        key = self.build_key(image.filename, folder)

        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=webp_bytes,
                ContentType="image/webp",
            )
        except Exception as exc:
            logger.error("[r2_client] upload error for key '%s': %s", key, exc)
            raise UploadError(f"Failed to upload image: {exc}") from exc

        logger.info("[r2_client] Uploaded %s (%d bytes)", key, len(webp_bytes))
        return self.get_image_url(key)

    def delete(self, url: str) -> None:
        """Delete the object behind *url*. Placeholders and foreign URLs are skipped."""
        if is_placeholder(url):
            return

        key = self.key_from_url(url)
        if key is None:
            logger.info("[r2_client] Not deleting %s: outside bucket %s", url, self.bucket)
            return

        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except Exception as exc:
            logger.error("[r2_client] delete error for key '%s': %s", key, exc)
            raise UploadError(f"Failed to delete image: {exc}") from exc
