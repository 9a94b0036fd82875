"""
Application context: the collaborators and shared state of one running
app, created explicitly at start-up instead of as import-time globals.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone

from atelier.models.session import Notice
from atelier.services.cache import ViewCache

logger = logging.getLogger(__name__)

MAX_NOTICES = 50


class AppContext:
    """Holds the store, image storage, auth, mailer, describer, view cache
    and the operator notice queue.

    Lifecycle: ``init()`` on app start, ``end_session()`` on sign-out,
    ``teardown()`` on shutdown.
    """

    def __init__(self, store, images, auth, mailer, describer, cache: ViewCache | None = None):
        self.store = store
        self.images = images
        self.auth = auth
        self.mailer = mailer
        self.describer = describer
        self.cache = cache if cache is not None else ViewCache()
        self.notices: deque[Notice] = deque(maxlen=MAX_NOTICES)
        self.started = False

    @classmethod
    def from_env(cls) -> "AppContext":
        """Wire the real Supabase, R2, SendGrid and Gemini clients from config."""
        from atelier.services.describer import PaintingDescriber
        from atelier.storage.auth_client import AuthClient
        from atelier.storage.r2_client import ImageStorage, create_r2_client
        from atelier.storage.sendgrid_client import SendGridMailer
        from atelier.storage.supabase_client import PaintingStore, create_supabase

        supabase = create_supabase()
        return cls(
            store=PaintingStore(supabase),
            images=ImageStorage(create_r2_client()),
            auth=AuthClient(supabase),
            mailer=SendGridMailer(),
            describer=PaintingDescriber(),
        )

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def init(self) -> None:
        self.cache.clear()
        self.notices.clear()
        self.started = True
        logger.info("[context] Application context initialised")

    def end_session(self) -> None:
        """Forget per-operator state after sign-out."""
        self.notices.clear()

    def teardown(self) -> None:
        self.cache.clear()
        self.notices.clear()
        close = getattr(self.mailer, "close", None)
        if callable(close):
            close()
        self.started = False
        logger.info("[context] Application context torn down")

    # -----------------------------------------------------------------------
    # Notices
    # -----------------------------------------------------------------------

    def notify(self, title: str, message: str = "", level: str = "info") -> Notice:
        notice = Notice(
            level=level,
            title=title,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        self.notices.append(notice)
        return notice

    def drain_notices(self) -> list[Notice]:
        """Return and clear the queued notices."""
        drained = list(self.notices)
        self.notices.clear()
        return drained
