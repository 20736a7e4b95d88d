#!/usr/bin/env python3
"""
ffmpeg/ffprobe helpers: faststart normalization, audio probing and the
size-governed audio extraction that feeds Whisper.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from ..errors import MediaToolError
from ..results import Absent, Maybe

logger = logging.getLogger(__name__)

# Whisper rejects uploads above 25 MB.
AUDIO_SIZE_LIMIT_BYTES = 25 * 1024 * 1024
PRIMARY_AUDIO_BITRATE = "64k"
FALLBACK_AUDIO_BITRATE = "32k"
AUDIO_SAMPLE_RATE = 16000

NORMALIZE_TIMEOUT_SECS = 120
PROBE_TIMEOUT_SECS = 30
EXTRACT_TIMEOUT_SECS = 60


def _binary(name: str) -> str:
    return shutil.which(name) or name


def _run(cmd: List[str], timeout: int) -> subprocess.CompletedProcess:
    logger.debug("exec: %s", " ".join(cmd))
    return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=True)


def normalize_video(raw_path: Path, target_path: Path) -> Path:
    """Stream-copy `raw_path` into `target_path` with the moov atom up front.

    Falls back to renaming the raw download when ffmpeg fails; the result is
    always `target_path`.
    """
    cmd = [
        _binary("ffmpeg"),
        "-i", str(raw_path),
        "-c", "copy",
        "-movflags", "+faststart",
        str(target_path),
        "-y",
    ]
    try:
        _run(cmd, NORMALIZE_TIMEOUT_SECS)
        raw_path.unlink(missing_ok=True)
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
        logger.warning("⚠️  faststart re-encode failed, keeping original file: %s", e)
        target_path.unlink(missing_ok=True)
        raw_path.replace(target_path)
    return target_path


def has_audio_stream(video_path: Path) -> bool:
    """True when ffprobe reports at least one audio stream.

    Probe failures count as "no audio" so the item skips transcription.
    """
    cmd = [
        _binary("ffprobe"),
        "-v", "error",
        "-select_streams", "a",
        "-show_entries", "stream=codec_type",
        "-of", "csv=p=0",
        str(video_path),
    ]
    try:
        result = _run(cmd, PROBE_TIMEOUT_SECS)
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
        logger.warning("⚠️  ffprobe failed for %s: %s", video_path.name, e)
        return False
    return "audio" in (result.stdout or "")


def extract_audio(video_path: Path, audio_path: Path, bitrate: str) -> Path:
    """Mono 16 kHz MP3 at `bitrate`, overwriting `audio_path`."""
    cmd = [
        _binary("ffmpeg"),
        "-i", str(video_path),
        "-vn",
        "-acodec", "libmp3lame",
        "-ab", bitrate,
        "-ar", str(AUDIO_SAMPLE_RATE),
        "-ac", "1",
        str(audio_path),
        "-y",
    ]
    try:
        _run(cmd, EXTRACT_TIMEOUT_SECS)
    except subprocess.TimeoutExpired as e:
        raise MediaToolError(f"Audio extraction timed out after {EXTRACT_TIMEOUT_SECS}s") from e
    except (subprocess.CalledProcessError, OSError) as e:
        stderr = getattr(e, "stderr", "") or ""
        raise MediaToolError(f"Audio extraction failed: {e} {stderr[-300:]}".strip()) from e
    return audio_path


def audio_path_for(video_path: Path) -> Path:
    return video_path.with_name(f"{video_path.stem}_audio.mp3")


def extract_governed_audio(video_path: Path, audio_path: Optional[Path] = None) -> Maybe[Path]:
    """Probe, extract, and step the bitrate down once if over the size limit.

    Returns Absent when the video carries no audio stream. If the 32k pass is
    still over the limit the oversized file is returned as-is and Whisper
    decides.
    """
    if not has_audio_stream(video_path):
        return Absent("video has no audio stream")

    audio_path = audio_path or audio_path_for(video_path)
    extract_audio(video_path, audio_path, PRIMARY_AUDIO_BITRATE)

    size = audio_path.stat().st_size
    if size > AUDIO_SIZE_LIMIT_BYTES:
        logger.info(
            "🔉 Audio is %.1f MB at %s, re-extracting at %s",
            size / (1024 * 1024),
            PRIMARY_AUDIO_BITRATE,
            FALLBACK_AUDIO_BITRATE,
        )
        extract_audio(video_path, audio_path, FALLBACK_AUDIO_BITRATE)
        size = audio_path.stat().st_size
        if size > AUDIO_SIZE_LIMIT_BYTES:
            logger.warning(
                "⚠️  Audio still %.1f MB after step-down; submitting anyway",
                size / (1024 * 1024),
            )
    return audio_path


__all__ = [
    "AUDIO_SIZE_LIMIT_BYTES",
    "PRIMARY_AUDIO_BITRATE",
    "FALLBACK_AUDIO_BITRATE",
    "normalize_video",
    "has_audio_stream",
    "extract_audio",
    "extract_governed_audio",
    "audio_path_for",
]
