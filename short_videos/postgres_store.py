#!/usr/bin/env python3
"""
Postgres access for the short video processor.

Talks to the hosted Postgres behind the dashboard directly with psycopg.
Each public method opens its own autocommit connection, mirroring the NAS
Postgres writer; the association rewrite runs inside an explicit
transaction so the delete and insert land together.

Tables:
- short_videos (read + partial update)
- psychological_triggers, power_words, short_video_categories (read only)
- short_video_triggers, short_video_power_words (delete + insert)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import psycopg
from psycopg.rows import dict_row

from .errors import DatastoreError, ListingError
from .models import ENRICHABLE_COLUMNS, Category, ShortVideo, Taxonomy, TaxonomyTag

logger = logging.getLogger(__name__)

VIDEO_COLUMNS = (
    "id",
    "name",
    "source_url",
    "source_id",
    "description",
    "platform",
) + ENRICHABLE_COLUMNS

# flavor -> (join table, foreign key column for the tag)
ASSOCIATION_TABLES = {
    "trigger": ("short_video_triggers", "trigger_id"),
    "power_word": ("short_video_power_words", "power_word_id"),
}

LISTING_SQL = """
SELECT {columns}
FROM short_videos
WHERE is_active = true
    {stage_clause}
    {id_clause}
ORDER BY created_at ASC
LIMIT %(limit)s;
"""


def stage_clause(skip_media: bool, skip_ai: bool) -> str:
    """Null-state filter for the stage that will run first."""
    if not skip_media:
        return "AND video_url IS NULL"
    if not skip_ai:
        return "AND ai_summary IS NULL"
    return ""


class PostgresStore:
    """Datastore adapter used by the orchestrator and the persistence writer."""

    def __init__(self, dsn: str):
        self.dsn = dsn

    def _connect(self):
        return psycopg.connect(self.dsn, autocommit=True)

    # --- Reads ---
    def list_candidates(
        self,
        limit: int,
        *,
        skip_media: bool,
        skip_ai: bool,
        video_ids: Optional[Sequence[str]] = None,
    ) -> List[ShortVideo]:
        """Active rows matching the stage null filter, oldest first.

        No carousel filtering happens here; the caller over-fetches and filters.
        """
        params: Dict[str, Any] = {"limit": limit}
        id_clause = ""
        if video_ids:
            id_clause = "AND id::text = ANY(%(video_ids)s)"
            params["video_ids"] = [str(v) for v in video_ids]
        sql = LISTING_SQL.format(
            columns=", ".join(VIDEO_COLUMNS),
            stage_clause=stage_clause(skip_media, skip_ai),
            id_clause=id_clause,
        )
        try:
            with self._connect() as conn, conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
        except psycopg.Error as exc:
            raise ListingError(f"Failed to fetch videos: {exc}") from exc
        logger.debug("Listed %d candidate rows", len(rows))
        return [ShortVideo.from_row(row) for row in rows]

    def fetch_taxonomy(self) -> Taxonomy:
        """Load triggers, power words and categories in full."""
        try:
            with self._connect() as conn, conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id, name, slug FROM psychological_triggers")
                triggers = [_tag(row) for row in cur.fetchall()]
                cur.execute("SELECT id, name, slug FROM power_words")
                power_words = [_tag(row) for row in cur.fetchall()]
                cur.execute("SELECT id, name, slug FROM short_video_categories")
                categories = [
                    Category(id=str(row["id"]), name=row.get("name") or "", slug=row.get("slug") or "")
                    for row in cur.fetchall()
                ]
        except psycopg.Error as exc:
            raise DatastoreError(f"Failed to load taxonomy: {exc}") from exc
        return Taxonomy(triggers=triggers, power_words=power_words, categories=categories)

    # --- Writes ---
    def update_video(self, video_id: str, payload: Mapping[str, Any]) -> None:
        """Apply a partial update.

        Enrichable columns are wrapped in COALESCE so a value that landed
        between listing and writing is never replaced.
        """
        unknown = set(payload) - set(ENRICHABLE_COLUMNS) - {"updated_at"}
        if unknown:
            raise ValueError(f"Refusing to update non-enrichable columns: {sorted(unknown)}")

        set_updates = [
            f"{col} = COALESCE({col}, %({col})s)" for col in ENRICHABLE_COLUMNS if col in payload
        ]
        if "updated_at" in payload:
            set_updates.append("updated_at = %(updated_at)s")
        else:
            set_updates.append("updated_at = now()")
        params = dict(payload)
        params["id"] = video_id
        update_sql = f"UPDATE short_videos SET {', '.join(set_updates)} WHERE id = %(id)s"
        try:
            with self._connect() as conn, conn.cursor() as cur:
                cur.execute(update_sql, params)
        except psycopg.Error as exc:
            raise DatastoreError(f"Update failed for {video_id}: {exc}") from exc

    def replace_associations(self, flavor: str, video_id: str, tag_ids: Iterable[str]) -> None:
        """Delete-then-insert the join rows for one flavor in one transaction."""
        table, tag_column = ASSOCIATION_TABLES[flavor]
        rows = [(video_id, tag_id) for tag_id in dict.fromkeys(tag_ids)]
        try:
            with self._connect() as conn:
                with conn.transaction(), conn.cursor() as cur:
                    cur.execute(f"DELETE FROM {table} WHERE video_id = %s", (video_id,))
                    if rows:
                        cur.executemany(
                            f"INSERT INTO {table} (video_id, {tag_column}) VALUES (%s, %s)",
                            rows,
                        )
        except psycopg.Error as exc:
            raise DatastoreError(f"{table} rewrite failed for {video_id}: {exc}") from exc


def _tag(row: Mapping[str, Any]) -> TaxonomyTag:
    return TaxonomyTag(id=str(row["id"]), name=row.get("name") or "", slug=row.get("slug") or "")


def create_store_from_settings(settings) -> PostgresStore:
    return PostgresStore(settings.database_url)


__all__ = ["PostgresStore", "ASSOCIATION_TABLES", "stage_clause", "create_store_from_settings"]
