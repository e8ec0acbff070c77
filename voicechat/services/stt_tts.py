"""
Clientes STT/TTS sobre OpenAI.
- STT: Whisper (`audio.transcriptions`), respuesta en texto plano.
- TTS: `audio.speech`, voz y velocidad fijas desde Settings.
Los fallos del SDK se envuelven en TranscriptionError / SynthesisError.
"""
import logging
from pathlib import Path
from typing import Optional

from openai import OpenAI

from ..core.config import Settings
from ..core.errors import SynthesisError, TranscriptionError

log = logging.getLogger(__name__)


def require_openai(cfg: Settings) -> OpenAI:
    if not cfg.OPENAI_API_KEY:
        raise RuntimeError("Missing OPENAI_API_KEY")
    return OpenAI(api_key=cfg.OPENAI_API_KEY)


class OpenAIClient:
    """Base: el cliente del SDK se crea en el primer uso (la app arranca sin API key)."""

    def __init__(self, cfg: Settings, client: Optional[OpenAI] = None) -> None:
        self.cfg = cfg
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = require_openai(self.cfg)
        return self._client


class SpeechToTextClient(OpenAIClient):
    def transcribe(self, path: Path, language: Optional[str] = None) -> str:
        try:
            with open(path, "rb") as fh:
                out = self.client.audio.transcriptions.create(
                    model=self.cfg.STT_MODEL,
                    file=fh,
                    language=language or self.cfg.STT_LANGUAGE,
                    response_format="text",
                )
        except Exception as e:
            log.warning(f"[stt] transcription failed: {e}")
            raise TranscriptionError(str(e)) from e

        # con response_format="text" el SDK devuelve str
        text = out if isinstance(out, str) else getattr(out, "text", "")
        text = (text or "").strip()
        if not text:
            raise TranscriptionError("Empty transcription")
        return text


class TextToSpeechClient(OpenAIClient):
    def synthesize(self, text: str) -> bytes:
        try:
            speech = self.client.audio.speech.create(
                model=self.cfg.TTS_MODEL,
                voice=self.cfg.TTS_VOICE,
                input=text,
                speed=self.cfg.TTS_SPEED,
            )
            raw = speech.read() if hasattr(speech, "read") else getattr(speech, "content", b"")
        except Exception as e:
            log.warning(f"[tts] synthesis failed: {e}")
            raise SynthesisError(str(e)) from e

        if not raw:
            raise SynthesisError("Empty audio")
        return raw
