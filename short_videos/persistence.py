"""Partial, idempotent persistence of derived values."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .models import DerivedValues, ShortVideo

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def build_update_payload(
    video: ShortVideo,
    derived: DerivedValues,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Return only the columns that are null on `video` and were derived now.

    `updated_at` is always present. Empty strings count as "not derived".
    """
    payload: Dict[str, Any] = {"updated_at": (now or _now_utc()).isoformat()}
    for column, value in derived.as_columns().items():
        if value is None or value == "":
            continue
        if getattr(video, column) is not None:
            continue
        payload[column] = value
    return payload


class PersistenceWriter:
    """Applies derived values to one record plus its tag associations."""

    def __init__(self, store, *, dry_run: bool = False):
        self.store = store
        self.dry_run = dry_run

    def write(self, video: ShortVideo, derived: DerivedValues) -> Dict[str, Any]:
        payload = build_update_payload(video, derived)
        enrichment = derived.enrichment
        trigger_ids = list(enrichment.trigger_ids) if enrichment else []
        power_word_ids = list(enrichment.power_word_ids) if enrichment else []

        if self.dry_run:
            logger.info(
                "🔍 [DRY RUN] Would update: video_url=%s, cover_url=%s, transcript=%s, ai=%s, "
                "triggers=%d, power_words=%d",
                bool(derived.video_url),
                bool(derived.cover_url),
                bool(derived.transcript),
                bool(enrichment),
                len(trigger_ids),
                len(power_word_ids),
            )
            return payload

        logger.info("💾 Updating database...")
        self.store.update_video(video.id, payload)

        # An empty match list leaves existing associations alone.
        if trigger_ids:
            self.store.replace_associations("trigger", video.id, trigger_ids)
        if power_word_ids:
            self.store.replace_associations("power_word", video.id, power_word_ids)
        return payload


__all__ = ["build_update_payload", "PersistenceWriter"]
