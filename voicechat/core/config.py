"""
Configuración central de la app (fuente única de verdad).
Lee variables de entorno y expone un objeto Settings tipado.

`settings` es solo el valor por defecto: stores, clientes de IA y el pipeline
reciben su Settings explícitamente (los tests construyen el suyo).
"""
import os
from pydantic import BaseModel, Field

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful girl assistant who can communicate fluently in Thai language. "
    "Please respond in Thai if the user speaks Thai. "
    "เริ่มต้นคำตอบด้วย สวัสดี นี่คือ PiyanutAI"
)


def _origins() -> list[str]:
    raw = os.getenv("FRONTEND_URL", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


class Settings(BaseModel):
    # ---- persistencia ----
    MONGO_URI: str = Field(default_factory=lambda: os.getenv("MONGO_URI", "mongodb://localhost:27017"))
    MONGO_DB: str = Field(default_factory=lambda: os.getenv("MONGO_DB", "voicechat"))
    STORE_BACKEND: str = Field(default_factory=lambda: os.getenv("STORE_BACKEND", "mongo").lower())

    # ---- auth ----
    JWT_SECRET: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", "changeme"))
    JWT_EXPIRES_MIN: int = Field(default_factory=lambda: int(os.getenv("JWT_EXPIRES_MIN", "60")))
    CORS_ORIGINS: list[str] = Field(default_factory=_origins)
    AUTH_RATE_LIMIT: int = Field(default_factory=lambda: int(os.getenv("AUTH_RATE_LIMIT", "100")))
    AUTH_RATE_WINDOW_SECONDS: int = Field(default_factory=lambda: int(os.getenv("AUTH_RATE_WINDOW_SECONDS", "900")))
    CACHE_TTL_SECONDS: int = Field(default_factory=lambda: int(os.getenv("CACHE_TTL_SECONDS", "300")))

    # ---- OpenAI ----
    OPENAI_API_KEY: str = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    CHAT_MODEL: str = Field(default_factory=lambda: os.getenv("OPENAI_FINE_TUNED_MODEL") or "gpt-3.5-turbo")
    LLM_TEMPERATURE: float = Field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.7")))
    LLM_MAX_TOKENS: int = Field(default_factory=lambda: int(os.getenv("LLM_MAX_TOKENS", "3000")))
    SYSTEM_PROMPT: str = Field(default_factory=lambda: os.getenv("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT))

    STT_MODEL: str = Field(default_factory=lambda: os.getenv("STT_MODEL", "whisper-1"))
    STT_LANGUAGE: str = Field(default_factory=lambda: os.getenv("STT_LANGUAGE", "th"))

    TTS_MODEL: str = Field(default_factory=lambda: os.getenv("TTS_MODEL", "tts-1"))
    TTS_VOICE: str = Field(default_factory=lambda: os.getenv("TTS_VOICE", "nova"))
    TTS_SPEED: float = Field(default_factory=lambda: float(os.getenv("TTS_SPEED", "1.0")))

    # ---- uploads ----
    TEMP_DIR: str = Field(default_factory=lambda: os.getenv("TEMP_DIR", os.path.join(os.getcwd(), "temp")))
    MAX_AUDIO_BYTES: int = Field(default_factory=lambda: int(os.getenv("MAX_AUDIO_BYTES", str(10 * 1024 * 1024))))

    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


settings = Settings()
