#!/usr/bin/env python3
"""
Short video batch processor.

For each active short video still missing media or AI fields:
1. Download video + thumbnail via yt-dlp
2. Normalize for streaming and upload both to ImageKit
3. Transcribe with Whisper (skipped when the video has no audio)
4. Generate summary/hook/CTA and taxonomy matches
5. Write only the fields that are still null

Items run strictly one at a time with a pause in between to stay inside
the Whisper/OpenAI rate limits. A failing item is logged and counted; it
never stops the batch.
"""

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .config import Settings
from .models import DerivedValues, ShortVideo
from .persistence import PersistenceWriter
from .results import is_absent
from .services import media
from .services.acquisition import SourceAcquirer
from .services.enrichment import EnrichmentEngine
from .services.imagekit_client import COVER_FOLDER, VIDEO_FOLDER, ImageKitClient
from .services.transcription import Transcriber

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 500
DEFAULT_DELAY_MS = 30000


@dataclass
class RunOptions:
    limit: int = DEFAULT_LIMIT
    delay_ms: int = DEFAULT_DELAY_MS
    skip_media: bool = False
    skip_ai: bool = False
    dry_run: bool = False
    video_ids: List[str] = field(default_factory=list)


@dataclass
class RunStats:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    carousel_excluded: int = 0

    def summary_lines(self) -> List[str]:
        return [
            f"  Processed: {self.processed}",
            f"  Success: {self.succeeded}",
            f"  Failed: {self.failed}",
            f"  Skipped: {self.skipped}",
        ]


def select_eligible(rows: Sequence[ShortVideo], limit: int) -> Tuple[List[ShortVideo], int]:
    """Drop carousel image posts, then cap to `limit`.

    Returns the eligible videos and how many carousel rows were dropped.
    """
    videos = [row for row in rows if not row.is_carousel]
    carousel = len(rows) - len(videos)
    return videos[: max(limit, 0)], carousel


def source_key_for(video: ShortVideo) -> str:
    return video.source_id or f"{video.platform}_{int(time.time() * 1000)}"


class ShortVideoProcessor:
    """Runs the per-item pipeline and the batch loop around it.

    Clients are built on first use so a media-only run never needs OpenAI
    keys and an AI-only run never needs ImageKit.
    """

    def __init__(
        self,
        settings: Settings,
        store,
        options: Optional[RunOptions] = None,
        *,
        acquirer: Optional[SourceAcquirer] = None,
        uploader: Optional[ImageKitClient] = None,
        transcriber: Optional[Transcriber] = None,
        enricher: Optional[EnrichmentEngine] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.store = store
        self.options = options or RunOptions()
        self.writer = PersistenceWriter(store, dry_run=self.options.dry_run)
        self._acquirer = acquirer
        self._uploader = uploader
        self._transcriber = transcriber
        self._enricher = enricher
        self._sleep = sleep

    # --- lazily built collaborators ---
    @property
    def acquirer(self) -> SourceAcquirer:
        if self._acquirer is None:
            self._acquirer = SourceAcquirer(
                cookies_browser=self.settings.cookies_browser,
                cookies_file=self.settings.cookies_file,
            )
        return self._acquirer

    @property
    def uploader(self) -> ImageKitClient:
        if self._uploader is None:
            self._uploader = ImageKitClient(
                self.settings.imagekit_private_key,
                self.settings.imagekit_upload_url,
            )
        return self._uploader

    @property
    def transcriber(self) -> Transcriber:
        if self._transcriber is None:
            self._transcriber = Transcriber(self.settings.openai_api_key, self.settings.transcribe_model)
        return self._transcriber

    @property
    def enricher(self) -> EnrichmentEngine:
        if self._enricher is None:
            self._enricher = EnrichmentEngine(
                self.store.fetch_taxonomy,
                api_key=self.settings.openai_api_key,
                model=self.settings.llm_model,
            )
        return self._enricher

    # --- per item ---
    def process_video(self, video: ShortVideo) -> bool:
        """Run every eligible stage for one record.

        Returns False when no stage applied (counted as skipped). Raises on
        any hard stage failure. The working directory is always removed.
        """
        opts = self.options
        self.settings.work_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix=f"short-video-{video.id}-", dir=self.settings.work_dir) as tmp:
            work_dir = Path(tmp)
            source_key = source_key_for(video)
            video_path = work_dir / f"{source_key}.mp4"

            derived = DerivedValues()
            video_url = video.video_url
            transcript = video.transcript
            ran_stage = False

            if not opts.skip_media and not video_url:
                ran_stage = True
                logger.info("  📥 Downloading video...")
                raw_path = self.acquirer.download_video(video.source_url, video_path)
                media.normalize_video(raw_path, video_path)

                logger.info("  📤 Uploading video to ImageKit...")
                video_url = self.uploader.upload_file(
                    video_path, f"{video.platform}_{source_key}.mp4", VIDEO_FOLDER
                )
                derived.video_url = video_url

                logger.info("  🖼️  Downloading thumbnail...")
                thumb = self.acquirer.download_thumbnail(video.source_url, work_dir)
                if not is_absent(thumb):
                    logger.info("  📤 Uploading cover to ImageKit...")
                    derived.cover_url = self.uploader.upload_file(
                        thumb, f"{video.platform}_{source_key}.jpg", COVER_FOLDER
                    )

            if not opts.skip_ai and video_url and not transcript:
                ran_stage = True
                logger.info("  🎤 Generating transcript with Whisper...")
                if not video_path.exists():
                    self.acquirer.fetch_from_url(video_url, video_path)
                result = self.transcriber.transcribe_video(video_path)
                if not is_absent(result):
                    transcript = result
                    derived.transcript = result

            if not opts.skip_ai and transcript:
                ran_stage = True
                logger.info("  🤖 Generating AI content...")
                derived.enrichment = self.enricher.enrich(transcript, video.name, video.description)
            elif not opts.skip_ai and video_url:
                logger.warning("  ⚠️  No transcript available, skipping AI content generation")

            if not ran_stage:
                return False

            self.writer.write(video, derived)
            return True

    # --- batch ---
    def fetch_eligible(self) -> Tuple[List[ShortVideo], int]:
        """List, drop carousels, cap. Raises ListingError."""
        opts = self.options
        rows = self.store.list_candidates(
            opts.limit * 2,
            skip_media=opts.skip_media,
            skip_ai=opts.skip_ai,
            video_ids=opts.video_ids or None,
        )
        return select_eligible(rows, opts.limit)

    def run(self) -> RunStats:
        opts = self.options
        logger.info("🎬 Short Video Batch Processor")
        logger.info(
            "Settings: limit=%d, delay=%dms, skip-media=%s, skip-ai=%s, dry-run=%s",
            opts.limit,
            opts.delay_ms,
            opts.skip_media,
            opts.skip_ai,
            opts.dry_run,
        )

        videos, carousel = self.fetch_eligible()
        stats = RunStats(carousel_excluded=carousel)
        if carousel:
            logger.info("⏭️  Skipped %d image carousel posts (not videos)", carousel)

        if not videos:
            logger.info("✅ No videos to process!")
            return stats

        logger.info("📋 Found %d videos to process", len(videos))
        total = len(videos)
        for idx, video in enumerate(videos, 1):
            stats.processed += 1
            logger.info("[%d/%d] Processing: %s...", idx, total, (video.name or "")[:50])
            logger.info("  🔗 %s", video.source_url)

            try:
                if self.process_video(video):
                    stats.succeeded += 1
                    logger.info("  ✅ Success!")
                else:
                    stats.skipped += 1
                    logger.info("  ⏭️  Skipped")
            except Exception as exc:
                stats.failed += 1
                logger.error("  ❌ Failed %s: %s", video.id, exc)

            if idx < total and opts.delay_ms > 0:
                logger.info("  ⏳ Waiting %.0fs before next video...", opts.delay_ms / 1000)
                self._sleep(opts.delay_ms / 1000)

        return stats


__all__ = ["ShortVideoProcessor", "RunOptions", "RunStats", "select_eligible", "source_key_for"]
