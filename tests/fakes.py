"""Test doubles shared across modules."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from short_videos.models import ShortVideo, Taxonomy
from short_videos.postgres_store import ASSOCIATION_TABLES


class FakeStore:
    """In-memory stand-in for PostgresStore with the same method surface."""

    def __init__(self, videos: Optional[List[ShortVideo]] = None, taxonomy: Optional[Taxonomy] = None):
        self.videos: Dict[str, ShortVideo] = {v.id: v for v in (videos or [])}
        self.taxonomy = taxonomy or Taxonomy()
        self.associations: Dict[str, Dict[str, List[str]]] = {flavor: {} for flavor in ASSOCIATION_TABLES}
        self.updates: List[tuple] = []
        self.listing_calls: List[dict] = []
        self.taxonomy_calls = 0
        self.fail_listing: Optional[Exception] = None

    @property
    def mutation_count(self) -> int:
        return len(self.updates) + sum(len(v) for v in self.associations.values() if v)

    def list_candidates(self, limit, *, skip_media, skip_ai, video_ids: Optional[Sequence[str]] = None):
        self.listing_calls.append(
            {"limit": limit, "skip_media": skip_media, "skip_ai": skip_ai, "video_ids": video_ids}
        )
        if self.fail_listing:
            raise self.fail_listing
        rows = list(self.videos.values())
        if not skip_media:
            rows = [v for v in rows if v.video_url is None]
        elif not skip_ai:
            rows = [v for v in rows if v.ai_summary is None]
        if video_ids:
            rows = [v for v in rows if v.id in video_ids]
        return rows[:limit]

    def fetch_taxonomy(self) -> Taxonomy:
        self.taxonomy_calls += 1
        return self.taxonomy

    def update_video(self, video_id, payload):
        self.updates.append((video_id, dict(payload)))
        video = self.videos[video_id]
        for column, value in payload.items():
            if column == "updated_at":
                continue
            if getattr(video, column) is None:
                setattr(video, column, value)

    def replace_associations(self, flavor, video_id, tag_ids):
        self.associations[flavor][video_id] = list(dict.fromkeys(tag_ids))


def make_video(idx: int = 1, **overrides) -> ShortVideo:
    fields = {
        "id": f"vid-{idx}",
        "name": f"Reel number {idx}",
        "source_url": f"https://www.instagram.com/reel/ABC{idx}/",
        "platform": "instagram",
        "source_id": f"ABC{idx}",
        "description": "Listing tour",
    }
    fields.update(overrides)
    return ShortVideo(**fields)
