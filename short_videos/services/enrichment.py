#!/usr/bin/env python3
"""
AI content generation for short videos.

Builds a prompt around the transcript and the current taxonomy, asks the
chat model for a JSON object, and maps the suggested labels back onto
existing trigger / power word / category ids. Labels that do not match an
existing row by case-insensitive name are dropped; nothing is created.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from ..errors import ConfigurationError, EnrichmentError
from ..models import Category, Enrichment, Taxonomy, TaxonomyTag

logger = logging.getLogger(__name__)

TRANSCRIPT_CHAR_LIMIT = 15000
MAX_TOKENS = 800
TEMPERATURE = 0.7

SYSTEM_PROMPT_TEMPLATE = """You are an expert short-form video content analyst for real estate marketing. Analyze Instagram Reels and TikTok video transcripts to extract key insights.

You will analyze videos about real estate topics and extract:
1. A concise summary (1-2 sentences)
2. The opening hook (first compelling statement)
3. A call-to-action suggestion
4. Psychological triggers used (from the provided list)
5. Power words used (from the provided list)
6. The best matching category

EXISTING PSYCHOLOGICAL TRIGGERS: {triggers}
EXISTING POWER WORDS: {power_words}
EXISTING CATEGORIES: {categories}

Respond in JSON format only."""

USER_PROMPT_TEMPLATE = """Analyze this short-form real estate video:

TITLE: {title}
DESCRIPTION: {description}
TRANSCRIPT: {transcript}

Return JSON with:
- ai_summary: string
- suggested_hook: string
- suggested_cta: string
- suggested_triggers: string[] (from existing list)
- suggested_power_words: string[] (from existing list)
- suggested_category: string (exact name from existing list)"""


def build_messages(transcript: str, title: str, description: Optional[str], taxonomy: Taxonomy) -> list:
    system_prompt = SYSTEM_PROMPT_TEMPLATE.format(
        triggers=", ".join(t.name for t in taxonomy.triggers),
        power_words=", ".join(p.name for p in taxonomy.power_words),
        categories=", ".join(c.name for c in taxonomy.categories),
    )
    user_prompt = USER_PROMPT_TEMPLATE.format(
        title=title or "Unknown",
        description=description or "No description",
        transcript=(transcript or "")[:TRANSCRIPT_CHAR_LIMIT],
    )
    return [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]


def parse_json_object(raw: Optional[str]) -> Dict[str, Any]:
    """Parse the model reply as a JSON object; {} when it is not one."""
    text = (raw or "").strip()
    if not text:
        return {}
    candidates = [text]
    fence_match = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.DOTALL | re.IGNORECASE)
    if fence_match:
        candidates.append(fence_match.group(1).strip())
    first_brace, last_brace = text.find("{"), text.rfind("}")
    if first_brace != -1 and first_brace < last_brace:
        candidates.append(text[first_brace:last_brace + 1])

    for candidate in candidates:
        try:
            result = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(result, dict):
            return result
    logger.warning("⚠️  AI response was not a JSON object; using empty result")
    return {}


def _index_by_name(rows: Iterable[Any]) -> Dict[str, str]:
    index: Dict[str, str] = {}
    for row in rows:
        key = (row.name or "").lower()
        if key and key not in index:
            index[key] = row.id
    return index


def match_names(suggested: Any, rows: Sequence[TaxonomyTag]) -> List[str]:
    """Ids of `rows` whose name equals a suggestion, ignoring case."""
    if not isinstance(suggested, list):
        return []
    index = _index_by_name(rows)
    matched: List[str] = []
    for name in suggested:
        if not isinstance(name, str):
            continue
        row_id = index.get(name.lower())
        if row_id and row_id not in matched:
            matched.append(row_id)
    return matched


def match_category(suggested: Any, categories: Sequence[Category]) -> Optional[str]:
    if not isinstance(suggested, str) or not suggested:
        return None
    return _index_by_name(categories).get(suggested.lower())


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _response_text(resp: Any) -> str:
    content = getattr(resp, "content", None) or ""
    if isinstance(content, list):
        parts = [seg["text"] for seg in content if isinstance(seg, dict) and isinstance(seg.get("text"), str)]
        content = "\n".join(parts)
    return content


class EnrichmentEngine:
    """Transcript -> summary, hook, CTA and taxonomy matches."""

    def __init__(
        self,
        taxonomy_loader: Callable[[], Taxonomy],
        *,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        llm: Any = None,
    ):
        if llm is None and not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required for AI content generation")
        self.taxonomy_loader = taxonomy_loader
        if llm is None:
            llm = ChatOpenAI(
                model=model,
                api_key=api_key,
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            ).bind(response_format={"type": "json_object"})
        self.llm = llm

    def enrich(self, transcript: str, title: str, description: Optional[str] = None) -> Enrichment:
        # Taxonomy is admin-edited; read it fresh for every video.
        taxonomy = self.taxonomy_loader()
        messages = build_messages(transcript, title, description, taxonomy)
        try:
            resp = self.llm.invoke(messages)
        except Exception as exc:
            raise EnrichmentError(f"AI content request failed: {exc}") from exc

        data = parse_json_object(_response_text(resp))
        return Enrichment(
            summary=_as_text(data.get("ai_summary")),
            hook_text=_as_text(data.get("suggested_hook")),
            cta=_as_text(data.get("suggested_cta")),
            trigger_ids=match_names(data.get("suggested_triggers"), taxonomy.triggers),
            power_word_ids=match_names(data.get("suggested_power_words"), taxonomy.power_words),
            category_id=match_category(data.get("suggested_category"), taxonomy.categories),
        )


__all__ = [
    "EnrichmentEngine",
    "build_messages",
    "parse_json_object",
    "match_names",
    "match_category",
    "TRANSCRIPT_CHAR_LIMIT",
]
