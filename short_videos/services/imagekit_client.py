#!/usr/bin/env python3
"""
ImageKit upload client.

Posts media as multipart form data to the ImageKit upload API using the
private key (HTTP basic auth, empty password) and returns the CDN URL.
"""

from __future__ import annotations

import logging
import mimetypes
import time
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from ..errors import ConfigurationError, UploadError

logger = logging.getLogger(__name__)

UPLOAD_TIMEOUT_SECS = 120
VIDEO_FOLDER = "/short-videos/videos"
COVER_FOLDER = "/short-videos/covers"


class ImageKitClient:
    """Minimal uploader for the short video CDN folders."""

    def __init__(self, private_key: Optional[str], upload_url: str, session: Optional[requests.Session] = None):
        if not private_key:
            raise ConfigurationError("IMAGEKIT_PRIVATE_KEY is required for media uploads")
        self.upload_url = upload_url
        self.session = session or requests.Session()
        self.session.auth = (private_key, "")
        self.session.headers.update({"User-Agent": "short-video-processor/1.0"})

    def _post(self, file_name: str, content: bytes, mime: str, data: Dict[str, Any]) -> requests.Response:
        """POST with retries on connection errors and 5xx responses.

        The multipart body is rebuilt from `content` on every attempt.
        """
        max_retries = 3
        retry_delay = 1
        for attempt in range(max_retries):
            try:
                response = self.session.post(
                    self.upload_url,
                    files={"file": (file_name, content, mime)},
                    data=data,
                    timeout=UPLOAD_TIMEOUT_SECS,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt < max_retries - 1:
                    logger.warning(f"Upload connection error: {e}, retrying in {retry_delay}s...")
                    time.sleep(retry_delay)
                    retry_delay *= 2
                    continue
                raise
            if response.status_code < 500 or attempt == max_retries - 1:
                return response
            logger.warning(f"ImageKit error {response.status_code}, retrying in {retry_delay}s...")
            time.sleep(retry_delay)
            retry_delay *= 2
        return response

    def upload_file(self, file_path: Path, file_name: str, folder: str) -> str:
        """Upload `file_path` as `folder/file_name` and return its public URL."""
        if not file_path.exists():
            raise UploadError(f"File not found: {file_path}")

        mime = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        data: Dict[str, Any] = {
            "fileName": file_name,
            "folder": folder,
        }
        content = file_path.read_bytes()
        try:
            response = self._post(file_name, content, mime, data)
        except requests.RequestException as e:
            raise UploadError(f"ImageKit upload failed for {file_name}: {e}") from e

        if response.status_code != 200:
            detail = response.text[:200]
            try:
                detail = response.json().get("message", detail)
            except ValueError:
                pass
            raise UploadError(f"ImageKit upload failed for {file_name}: {response.status_code} - {detail}")

        try:
            url = response.json().get("url")
        except ValueError as e:
            raise UploadError(f"ImageKit returned a non-JSON body for {file_name}") from e
        if not url:
            raise UploadError(f"ImageKit returned no URL for {file_name}")
        logger.debug("Uploaded %s -> %s", file_name, url)
        return url


__all__ = ["ImageKitClient", "VIDEO_FOLDER", "COVER_FOLDER"]
