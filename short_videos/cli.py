#!/usr/bin/env python3
"""
Batch process short videos that were imported without media.

Usage:
    process-short-videos [options]
    python tools/process_short_videos.py [options]

Options:
    --limit=N       Process at most N videos (default: 500)
    --delay=MS      Delay between videos in ms (default: 30000)
    --skip-media    Skip video/cover download, only do AI generation
    --skip-ai       Skip AI generation, only do media download
    --dry-run       Don't update the database, just log what would happen
    --id=ID         Only consider this record id (repeatable)
    --verbose       Debug logging
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .config import Settings
from .errors import ListingError
from .postgres_store import create_store_from_settings
from .processor import DEFAULT_DELAY_MS, DEFAULT_LIMIT, RunOptions, ShortVideoProcessor

LOGGER = logging.getLogger("process_short_videos")


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from e
    if parsed < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return parsed


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Download, transcribe and enrich short videos missing media.")
    parser.add_argument(
        "--limit",
        type=_non_negative_int,
        default=DEFAULT_LIMIT,
        help=f"Maximum number of videos to process (default: {DEFAULT_LIMIT}).",
    )
    parser.add_argument(
        "--delay",
        type=_non_negative_int,
        default=DEFAULT_DELAY_MS,
        help=f"Delay between videos in milliseconds (default: {DEFAULT_DELAY_MS}).",
    )
    parser.add_argument("--skip-media", action="store_true", help="Skip video/cover download.")
    parser.add_argument("--skip-ai", action="store_true", help="Skip transcription and AI generation.")
    parser.add_argument("--dry-run", action="store_true", help="Log the database writes instead of applying them.")
    parser.add_argument(
        "--id",
        action="append",
        dest="video_ids",
        default=[],
        help="Restrict the run to this short video id (can be repeated).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def options_from_args(args: argparse.Namespace) -> RunOptions:
    return RunOptions(
        limit=args.limit,
        delay_ms=args.delay,
        skip_media=args.skip_media,
        skip_ai=args.skip_ai,
        dry_run=args.dry_run,
        video_ids=list(args.video_ids or []),
    )


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None, store=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    settings = settings or Settings.from_env()
    store = store or create_store_from_settings(settings)
    processor = ShortVideoProcessor(settings, store, options_from_args(args))

    try:
        stats = processor.run()
    except ListingError as exc:
        LOGGER.error("❌ %s", exc)
        return 1

    LOGGER.info("================================")
    LOGGER.info("📊 Summary:")
    for line in stats.summary_lines():
        LOGGER.info(line)
    LOGGER.info("================================")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
