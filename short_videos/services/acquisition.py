#!/usr/bin/env python3
"""
Source acquisition via yt-dlp.

Instagram/TikTok need a logged-in session, so yt-dlp borrows the cookies of
a local browser profile (or a Netscape cookie file when one is configured).

- download_video: hard failure (DownloadError) on any problem
- download_thumbnail: best effort, returns Absent instead of raising
- fetch_from_url: pulls an already-uploaded video back from the CDN
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import requests
import yt_dlp
from yt_dlp.utils import DownloadCancelled

from ..errors import DownloadError
from ..results import Absent, Maybe

logger = logging.getLogger(__name__)

VIDEO_FORMAT = "best[ext=mp4]/best"
VIDEO_TIMEOUT_SECS = 300
THUMBNAIL_TIMEOUT_SECS = 60
CDN_FETCH_TIMEOUT_SECS = 120
THUMBNAIL_STEM = "thumb"
THUMBNAIL_SUFFIXES = (".jpg", ".webp")


def temp_path_for(output_path: Path) -> Path:
    """`<stem>_temp<suffix>` next to the final target."""
    return output_path.with_name(f"{output_path.stem}_temp{output_path.suffix}")


class _Deadline:
    """Wall-clock budget for one yt-dlp call.

    Checked from the progress hook while bytes flow and from the logger
    during extraction, which runs before any progress callback.
    """

    def __init__(self, timeout_secs: float, clock: Callable[[], float] = time.monotonic):
        self.timeout_secs = timeout_secs
        self.clock = clock
        self.expires_at = clock() + timeout_secs

    def check(self) -> None:
        if self.clock() > self.expires_at:
            raise DownloadCancelled(f"download exceeded {self.timeout_secs}s")

    def hook(self, progress: Dict[str, Any]) -> None:
        self.check()


class _DeadlineLogger:
    """yt-dlp logger that forwards to ours and enforces the deadline."""

    def __init__(self, deadline: _Deadline):
        self.deadline = deadline

    def debug(self, msg: str) -> None:
        self.deadline.check()
        logger.debug(msg)

    def info(self, msg: str) -> None:
        self.deadline.check()
        logger.debug(msg)

    def warning(self, msg: str) -> None:
        self.deadline.check()
        logger.debug(msg)

    def error(self, msg: str) -> None:
        logger.debug(msg)


class SourceAcquirer:
    """yt-dlp wrapper for the reel/short platforms."""

    def __init__(self, cookies_browser: Optional[str] = "chrome", cookies_file: Optional[str] = None):
        self.cookies_browser = cookies_browser
        self.cookies_file = cookies_file

    def _base_opts(self, timeout_secs: float) -> Dict[str, Any]:
        deadline = _Deadline(timeout_secs)
        opts: Dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "socket_timeout": min(30, timeout_secs),
            "progress_hooks": [deadline.hook],
            "logger": _DeadlineLogger(deadline),
        }
        if self.cookies_file and os.path.isfile(self.cookies_file):
            opts["cookiefile"] = self.cookies_file
        elif self.cookies_browser:
            opts["cookiesfrombrowser"] = (self.cookies_browser,)
        return opts

    def download_video(self, source_url: str, output_path: Path) -> Path:
        """Download to `<stem>_temp.mp4` beside `output_path` and return that path.

        The caller normalizes the temp file into `output_path`.
        """
        temp_path = temp_path_for(output_path)
        ydl_opts = self._base_opts(VIDEO_TIMEOUT_SECS)
        ydl_opts.update({"format": VIDEO_FORMAT, "outtmpl": str(temp_path)})

        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                ydl.download([source_url])
        except DownloadCancelled as e:
            raise DownloadError(f"Video download timed out: {e}") from e
        except yt_dlp.utils.DownloadError as e:
            raise DownloadError(f"yt-dlp failed for {source_url}: {e}") from e

        if not temp_path.exists() or temp_path.stat().st_size == 0:
            raise DownloadError(f"yt-dlp produced no file for {source_url}")
        return temp_path

    def download_thumbnail(self, source_url: str, output_dir: Path) -> Maybe[Path]:
        """Write the post thumbnail as `thumb.jpg` (or .webp); never raises."""
        ydl_opts = self._base_opts(THUMBNAIL_TIMEOUT_SECS)
        ydl_opts.update(
            {
                "skip_download": True,
                "writethumbnail": True,
                "outtmpl": str(output_dir / THUMBNAIL_STEM),
                "postprocessors": [
                    {"key": "FFmpegThumbnailsConvertor", "format": "jpg", "when": "before_dl"}
                ],
            }
        )
        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                ydl.download([source_url])
        except Exception as e:
            logger.warning("⚠️  Thumbnail download failed for %s: %s", source_url, e)
            return Absent(f"thumbnail download failed: {e}")

        return find_thumbnail(output_dir)

    def fetch_from_url(self, video_url: str, output_path: Path) -> Path:
        """Stream an existing CDN copy to `output_path`."""
        try:
            with requests.get(video_url, stream=True, timeout=CDN_FETCH_TIMEOUT_SECS) as response:
                response.raise_for_status()
                with open(output_path, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=1024 * 1024):
                        if chunk:
                            fh.write(chunk)
        except requests.RequestException as e:
            raise DownloadError(f"Failed to fetch {video_url}: {e}") from e
        return output_path


def find_thumbnail(output_dir: Path) -> Maybe[Path]:
    candidates = sorted(
        p
        for p in output_dir.iterdir()
        if p.name.startswith(THUMBNAIL_STEM) and p.suffix.lower() in THUMBNAIL_SUFFIXES
    )
    if not candidates:
        return Absent("no thumbnail file written")
    return candidates[0]


__all__ = ["SourceAcquirer", "find_thumbnail", "temp_path_for", "VIDEO_FORMAT"]
