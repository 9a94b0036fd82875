"""
Supabase Auth client for Atelier: admin sign-in, sign-out and session
lookup. A session's presence gates every admin mutation.
"""

from __future__ import annotations

import logging

from supabase import Client

from atelier.errors import AuthRequired
from atelier.models.session import Session

logger = logging.getLogger(__name__)


class AuthClient:
    """Email/password authentication backed by Supabase Auth."""

    def __init__(self, client: Client):
        self.client = client

    def sign_in(self, email: str, password: str) -> Session:
        """Exchange credentials for a session. Raises AuthRequired on failure."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as exc:
            logger.warning("[auth] Sign-in failed for %s: %s", email, exc)
            raise AuthRequired("Invalid email or password.") from exc

        if response.session is None or response.user is None:
            raise AuthRequired("Invalid email or password.")

        return Session(
            access_token=response.session.access_token,
            user_id=response.user.id,
            email=response.user.email,
            expires_at=response.session.expires_at,
        )

    def sign_out(self, access_token: str | None = None) -> None:
        """End the session. Failures are logged; the caller is signed out locally anyway."""
        try:
            if access_token:
                self.client.auth.admin.sign_out(access_token)
            else:
                self.client.auth.sign_out()
        except Exception as exc:
            logger.warning("[auth] Sign-out error: %s", exc)

    def get_current_session(self, access_token: str | None) -> Session | None:
        """Validate *access_token* and return its session, or None."""
        if not access_token:
            return None

        try:
            response = self.client.auth.get_user(access_token)
        except Exception as exc:
            logger.info("[auth] Rejected session token: %s", exc)
            return None

        if response is None or response.user is None:
            return None

        return Session(
            access_token=access_token,
            user_id=response.user.id,
            email=response.user.email,
        )
