"""Row shapes read and written by the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

# Columns the payload builder may write; everything else is owned elsewhere.
ENRICHABLE_COLUMNS = (
    "video_url",
    "cover_url",
    "transcript",
    "ai_summary",
    "hook_text",
    "cta",
    "category_id",
)


@dataclass
class ShortVideo:
    id: str
    name: str
    source_url: str
    platform: str
    source_id: Optional[str] = None
    description: Optional[str] = None
    video_url: Optional[str] = None
    cover_url: Optional[str] = None
    transcript: Optional[str] = None
    ai_summary: Optional[str] = None
    hook_text: Optional[str] = None
    cta: Optional[str] = None
    category_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ShortVideo":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            source_url=row.get("source_url") or "",
            platform=row.get("platform") or "",
            source_id=row.get("source_id"),
            description=row.get("description"),
            video_url=row.get("video_url"),
            cover_url=row.get("cover_url"),
            transcript=row.get("transcript"),
            ai_summary=row.get("ai_summary"),
            hook_text=row.get("hook_text"),
            cta=row.get("cta"),
            category_id=str(row["category_id"]) if row.get("category_id") is not None else None,
        )

    @property
    def is_carousel(self) -> bool:
        # Carousel image posts carry an image index in the query string.
        return "img_index=" in (self.source_url or "")


@dataclass(frozen=True)
class TaxonomyTag:
    id: str
    name: str
    slug: str = ""
    emoji: Optional[str] = None


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    slug: str = ""


@dataclass
class Taxonomy:
    triggers: List[TaxonomyTag] = field(default_factory=list)
    power_words: List[TaxonomyTag] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)


@dataclass
class Enrichment:
    summary: str = ""
    hook_text: str = ""
    cta: str = ""
    trigger_ids: List[str] = field(default_factory=list)
    power_word_ids: List[str] = field(default_factory=list)
    category_id: Optional[str] = None


@dataclass
class DerivedValues:
    """Values produced for one record during a run; None means not derived."""

    video_url: Optional[str] = None
    cover_url: Optional[str] = None
    transcript: Optional[str] = None
    enrichment: Optional[Enrichment] = None

    def as_columns(self) -> Dict[str, Optional[str]]:
        enrichment = self.enrichment or Enrichment()
        return {
            "video_url": self.video_url,
            "cover_url": self.cover_url,
            "transcript": self.transcript,
            "ai_summary": enrichment.summary or None,
            "hook_text": enrichment.hook_text or None,
            "cta": enrichment.cta or None,
            "category_id": enrichment.category_id or None,
        }


__all__ = [
    "ENRICHABLE_COLUMNS",
    "ShortVideo",
    "TaxonomyTag",
    "Category",
    "Taxonomy",
    "Enrichment",
    "DerivedValues",
]
