"""
Cliente de chat completions (OpenAI).
Recibe la conversación ya armada (system + historial + user) y devuelve el
texto de la primera opción, sin limpiar.
"""
import logging
import time
from typing import Dict, List

from ..core.errors import CompletionError
from .stt_tts import OpenAIClient

log = logging.getLogger(__name__)


class ChatCompletionClient(OpenAIClient):
    def complete(self, messages: List[Dict[str, str]]) -> str:
        start = time.time()
        try:
            chat = self.client.chat.completions.create(
                model=self.cfg.CHAT_MODEL,
                messages=messages,
                temperature=self.cfg.LLM_TEMPERATURE,
                max_tokens=self.cfg.LLM_MAX_TOKENS,
            )
            content = chat.choices[0].message.content
        except Exception as e:
            log.warning(f"[completion] model={self.cfg.CHAT_MODEL} failed: {e}")
            raise CompletionError(str(e)) from e

        log.info(f"[completion] model={self.cfg.CHAT_MODEL} turns={len(messages)} in {round(time.time() - start, 4)}s")
        if not content:
            raise CompletionError("Empty completion")
        return content
