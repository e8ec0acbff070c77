# voicechat/services/chat_pipeline.py
"""
Pipeline de un turno de chat.

Voz:  audio → archivo temporal → STT → (system + historial + user) → LLM
      → limpieza Markdown → TTS → append (user, assistant) → respuesta.
Texto: igual pero sin STT ni TTS; la respuesta solo se recorta.

Garantías:
- No se persiste nada si falla cualquier paso anterior al append
  (incluido el TTS: el turno completo se reporta como fallido).
- El archivo temporal se borra en todos los caminos de salida.
- Los turnos de un mismo chat se ejecutan de uno en uno (KeyedLocks);
  chats distintos corren en paralelo.
- Las llamadas bloqueantes al SDK se mandan a un hilo (anyio.to_thread).
"""
import asyncio
import base64
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Dict, Iterable, List, Optional, Protocol

from anyio import to_thread

from ..core.config import Settings
from ..core.errors import CompletionError, InvalidInput, TranscriptionError
from ..models.conversation import ConversationStore, Message
from .audio import extension_for, temporary_audio
from .text_cleaning import strip_markdown

log = logging.getLogger(__name__)


class SpeechToText(Protocol):
    def transcribe(self, path: Path, language: Optional[str] = None) -> str: ...


class ChatCompletion(Protocol):
    def complete(self, messages: List[Dict[str, str]]) -> str: ...


class TextToSpeech(Protocol):
    def synthesize(self, text: str) -> bytes: ...


@dataclass(frozen=True)
class VoiceTurnResult:
    message: str
    audio: str  # base64
    transcription: str


@dataclass(frozen=True)
class TextTurnResult:
    message: str


class KeyedLocks:
    """Un asyncio.Lock por clave; la entrada se descarta cuando nadie la usa."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class ChatPipeline:
    def __init__(
        self,
        cfg: Settings,
        store: ConversationStore,
        stt: SpeechToText,
        llm: ChatCompletion,
        tts: TextToSpeech,
        locks: Optional[KeyedLocks] = None,
    ) -> None:
        self.cfg = cfg
        self.store = store
        self.stt = stt
        self.llm = llm
        self.tts = tts
        self.locks = locks if locks is not None else KeyedLocks()

    @staticmethod
    def lock_key(owner: str, chat_id: str) -> str:
        # por dueño: un chat ajeno nunca hace esperar a otro usuario
        return f"{owner}:{chat_id}"

    def build_messages(self, history: Iterable[Message], user_text: str) -> List[Dict[str, str]]:
        """system fijo + historial completo en orden + mensaje nuevo del usuario."""
        out = [{"role": "system", "content": self.cfg.SYSTEM_PROMPT}]
        out.extend({"role": m.role, "content": m.content} for m in history)
        out.append({"role": "user", "content": user_text})
        return out

    async def voice_turn(self, chat_id: str, owner: str, audio: bytes, mime: str) -> VoiceTurnResult:
        if not audio:
            raise InvalidInput("No audio file provided")
        if len(audio) > self.cfg.MAX_AUDIO_BYTES:
            raise InvalidInput("Audio file too large")
        extension_for(mime)

        async with self.locks.hold(self.lock_key(owner, chat_id)):
            chat = await self.store.get(chat_id, owner)
            log.info(f"[voice] chat={chat_id} mimetype={mime} size={len(audio)}")

            with temporary_audio(audio, mime, self.cfg.TEMP_DIR) as path:
                transcription = await to_thread.run_sync(self.stt.transcribe, path, self.cfg.STT_LANGUAGE)

            transcription = (transcription or "").strip()
            if not transcription:
                raise TranscriptionError("Empty transcription")

            messages = self.build_messages(chat.messages, transcription)
            raw = await to_thread.run_sync(self.llm.complete, messages)
            reply = strip_markdown(raw)
            if not reply:
                raise CompletionError("Empty reply after cleaning")

            speech = await to_thread.run_sync(self.tts.synthesize, reply)

            await self.store.append_messages(chat_id, owner, [
                Message(role="user", content=transcription),
                Message(role="assistant", content=reply),
            ])

        return VoiceTurnResult(
            message=reply,
            audio=base64.b64encode(speech).decode("ascii"),
            transcription=transcription,
        )

    async def text_turn(self, chat_id: str, owner: str, text: str) -> TextTurnResult:
        text = (text or "").strip()
        if not text:
            raise InvalidInput("No message provided")

        async with self.locks.hold(self.lock_key(owner, chat_id)):
            chat = await self.store.get(chat_id, owner)

            messages = self.build_messages(chat.messages, text)
            raw = await to_thread.run_sync(self.llm.complete, messages)
            reply = raw.strip()
            if not reply:
                raise CompletionError("Empty reply")

            await self.store.append_messages(chat_id, owner, [
                Message(role="user", content=text),
                Message(role="assistant", content=reply),
            ])

        return TextTurnResult(message=reply)
