"""Pydantic v2 models for admin sessions and UI notices."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class Session(BaseModel):
    """An authenticated admin session issued by Supabase Auth."""

    access_token: str
    user_id: str
    email: str | None = None
    expires_at: int | None = None


class Notice(BaseModel):
    """A toast/banner message queued for the operator."""

    level: Literal["info", "success", "error"] = "info"
    title: str
    message: str = ""
    created_at: datetime | None = None
