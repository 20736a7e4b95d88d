#!/usr/bin/env python3
"""
Settings for the short video processor.

Values come from the process environment. `.env.local` and `.env` in the
working directory are loaded first (existing variables win), matching how
the dashboard project keeps its keys.

Environment:
- DATABASE_URL (preferred) or PGHOST/PGPORT/PGUSER/PGPASSWORD/PGDATABASE/PGSSLMODE
- OPENAI_API_KEY
- SHORT_VIDEO_TRANSCRIBE_MODEL (default: whisper-1)
- SHORT_VIDEO_LLM_MODEL (default: gpt-4o-mini)
- IMAGEKIT_PRIVATE_KEY, IMAGEKIT_UPLOAD_URL
- YTDLP_COOKIES_BROWSER (default: chrome), YTDLP_COOKIES_FILE
- SHORT_VIDEO_WORK_DIR (default: system temp dir)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"


def load_env_files(base_dir: Optional[Path] = None) -> None:
    """Load `.env.local` then `.env` without overriding the real environment."""
    base = base_dir or Path.cwd()
    for name in (".env.local", ".env"):
        env_path = base / name
        if env_path.exists():
            load_dotenv(env_path, override=False)


def _env_dsn() -> str:
    dsn = os.getenv("DATABASE_URL")
    if dsn:
        return dsn
    host = os.getenv("PGHOST", "localhost")
    port = os.getenv("PGPORT", "5432")
    user = os.getenv("PGUSER") or os.getenv("POSTGRES_USER") or "postgres"
    password = os.getenv("PGPASSWORD") or os.getenv("POSTGRES_PASSWORD") or ""
    dbname = os.getenv("PGDATABASE") or os.getenv("POSTGRES_DB") or "postgres"
    sslmode = os.getenv("PGSSLMODE", "require")
    auth = f"{user}:{password}@" if password else f"{user}@"
    return f"postgresql://{auth}{host}:{port}/{dbname}?sslmode={sslmode}"


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    database_url: str
    openai_api_key: Optional[str] = None
    transcribe_model: str = "whisper-1"
    llm_model: str = "gpt-4o-mini"
    imagekit_private_key: Optional[str] = None
    imagekit_upload_url: str = DEFAULT_IMAGEKIT_UPLOAD_URL
    cookies_browser: Optional[str] = "chrome"
    cookies_file: Optional[str] = None
    work_dir: Path = Path(tempfile.gettempdir())

    @classmethod
    def from_env(cls, load_files: bool = True) -> "Settings":
        if load_files:
            load_env_files()
        work_dir = _clean(os.getenv("SHORT_VIDEO_WORK_DIR"))
        return cls(
            database_url=_env_dsn(),
            openai_api_key=_clean(os.getenv("OPENAI_API_KEY")),
            transcribe_model=_clean(os.getenv("SHORT_VIDEO_TRANSCRIBE_MODEL")) or "whisper-1",
            llm_model=_clean(os.getenv("SHORT_VIDEO_LLM_MODEL")) or "gpt-4o-mini",
            imagekit_private_key=_clean(os.getenv("IMAGEKIT_PRIVATE_KEY")),
            imagekit_upload_url=_clean(os.getenv("IMAGEKIT_UPLOAD_URL")) or DEFAULT_IMAGEKIT_UPLOAD_URL,
            cookies_browser=_clean(os.getenv("YTDLP_COOKIES_BROWSER", "chrome")),
            cookies_file=_clean(os.getenv("YTDLP_COOKIES_FILE")),
            work_dir=Path(work_dir) if work_dir else Path(tempfile.gettempdir()),
        )


__all__ = ["Settings", "load_env_files"]
