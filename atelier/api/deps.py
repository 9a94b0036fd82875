"""Request-scoped dependencies shared by the gallery and admin routers."""

from __future__ import annotations

import asyncio

from fastapi import Depends, Request

from atelier.config import SESSION_COOKIE
from atelier.context import AppContext
from atelier.errors import AuthRequired
from atelier.models.session import Session


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def session_token(request: Request) -> str | None:
    """Access token from the session cookie or an ``Authorization: Bearer`` header."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


async def get_session(
    request: Request,
    ctx: AppContext = Depends(get_context),
) -> Session | None:
    token = session_token(request)
    if token is None:
        return None
    return await asyncio.to_thread(ctx.auth.get_current_session, token)


async def require_admin(session: Session | None = Depends(get_session)) -> Session:
    if session is None:
        raise AuthRequired()
    return session
