"""Whisper transcription for downloaded short videos."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from openai import OpenAI, OpenAIError

from ..errors import ConfigurationError, TranscriptionError
from ..results import Absent, Maybe, is_absent
from . import media

logger = logging.getLogger(__name__)


class Transcriber:
    """Plain-text speech-to-text via the OpenAI audio API."""

    def __init__(self, api_key: Optional[str], model: str = "whisper-1", client: Optional[OpenAI] = None):
        if client is None and not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required for transcription")
        self.model = model
        self.client = client or OpenAI(api_key=api_key)

    def transcribe_file(self, audio_path: Path) -> str:
        try:
            with open(audio_path, "rb") as audio_file:
                response = self.client.audio.transcriptions.create(
                    file=audio_file,
                    model=self.model,
                    response_format="text",
                )
        except OpenAIError as e:
            raise TranscriptionError(f"Whisper request failed: {e}") from e
        # response_format=text returns a bare string; older SDKs wrap it.
        text = response if isinstance(response, str) else getattr(response, "text", "")
        return (text or "").strip()

    def transcribe_video(self, video_path: Path) -> Maybe[str]:
        """Extract governed audio and transcribe it.

        Absent means the video has no audio track. The extracted MP3 is
        removed whether or not the request succeeds.
        """
        audio_path = media.audio_path_for(video_path)
        try:
            audio = media.extract_governed_audio(video_path, audio_path)
            if is_absent(audio):
                logger.warning("⚠️  Video has no audio track, skipping transcription")
                return audio
            text = self.transcribe_file(audio)
        finally:
            audio_path.unlink(missing_ok=True)
        if not text:
            return Absent("transcription returned no text")
        return text


__all__ = ["Transcriber"]
