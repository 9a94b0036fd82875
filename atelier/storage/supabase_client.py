"""
Supabase client for Atelier: persistence of painting records.

All reads and writes of the ``paintings`` table go through
``PaintingStore``. Provider errors are wrapped in ``PersistenceError``
so callers never see a raw ``postgrest`` exception.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from supabase import Client, create_client

from atelier.config import PAINTINGS_TABLE, SUPABASE_SERVICE_KEY, SUPABASE_URL
from atelier.errors import PersistenceError
from atelier.models.painting import PaintingRecord

logger = logging.getLogger(__name__)


def create_supabase(url: str = SUPABASE_URL, key: str = SUPABASE_SERVICE_KEY) -> Client:
    """Build a Supabase client from config (or explicit credentials)."""
    return create_client(url, key)


class PaintingStore:
    """CRUD over the paintings table."""

    def __init__(self, client: Client, table: str = PAINTINGS_TABLE):
        self.client = client
        self.table = table

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def get_all(self) -> list[PaintingRecord]:
        """Every painting, most recently updated first."""
        try:
            result = (
                self.client.table(self.table)
                .select("*")
                .order("updated_at", desc=True)
                .execute()
            )
        except Exception as exc:
            logger.error("[store] get_all failed: %s", exc)
            raise PersistenceError(f"Failed to load paintings: {exc}") from exc

        paintings: list[PaintingRecord] = []
        for row in result.data or []:
            try:
                paintings.append(PaintingRecord.model_validate(row))
            except ValueError as exc:
                # One malformed row must not take the whole gallery down.
                logger.warning("[store] Skipping unreadable row %s: %s", row.get("id"), exc)
        return paintings

    def get_by_id(self, painting_id: str) -> PaintingRecord | None:
        """Fetch a single painting by its ID. Returns None when absent."""
        try:
            result = (
                self.client.table(self.table)
                .select("*")
                .eq("id", painting_id)
                .execute()
            )
        except Exception as exc:
            logger.error("[store] get_by_id(%s) failed: %s", painting_id, exc)
            raise PersistenceError(f"Failed to load painting {painting_id}: {exc}") from exc

        if not result.data:
            return None
        try:
            return PaintingRecord.model_validate(result.data[0])
        except ValueError as exc:
            logger.error("[store] Unreadable row %s: %s", painting_id, exc)
            raise PersistenceError(f"Painting {painting_id} could not be read: {exc}") from exc

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    def create(self, record: PaintingRecord) -> str:
        """Insert a new painting row and return its id."""
        row = record.to_row()
        try:
            self.client.table(self.table).insert(row).execute()
        except Exception as exc:
            logger.error("[store] create(%s) failed: %s", record.id, exc)
            raise PersistenceError(f"Failed to add painting: {exc}") from exc
        return record.id

    def update(self, painting_id: str, changes: dict) -> str:
        """Apply a partial update; ``updated_at`` is always refreshed."""
        row = dict(changes)
        row["updated_at"] = datetime.now(timezone.utc).isoformat()
        row.pop("id", None)
        row.pop("created_at", None)
        try:
            self.client.table(self.table).update(row).eq("id", painting_id).execute()
        except Exception as exc:
            logger.error("[store] update(%s) failed: %s", painting_id, exc)
            raise PersistenceError(f"Failed to update painting details: {exc}") from exc
        return painting_id

    def delete(self, painting_id: str) -> str:
        """Remove the painting row. Deletion is permanent."""
        try:
            self.client.table(self.table).delete().eq("id", painting_id).execute()
        except Exception as exc:
            logger.error("[store] delete(%s) failed: %s", painting_id, exc)
            raise PersistenceError(f"Failed to delete painting: {exc}") from exc
        return painting_id

    def exists(self, painting_id: str) -> bool:
        return self.get_by_id(painting_id) is not None
