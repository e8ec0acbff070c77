# voicechat/tests/conftest.py
"""
Fixtures y helpers para pruebas end-to-end con FastAPI + pytest-asyncio.
Usa el store en memoria y clientes de IA falsos; levanta FastAPI con lifespan.
"""
import os
import sys
import tempfile
import uuid
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

# ---- backend en memoria (debe setearse ANTES de importar voicechat.main) ----
os.environ["STORE_BACKEND"] = "memory"
os.environ.setdefault("TEMP_DIR", tempfile.mkdtemp(prefix="voicechat_test_"))

# ---- asegurar imports absolutos 'voicechat.*' ----
ROOT_DIR = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT_DIR))

from voicechat.core.errors import CompletionError, SynthesisError, TranscriptionError  # noqa: E402
from voicechat.main import app  # noqa: E402
from voicechat.services.chat_pipeline import ChatPipeline  # noqa: E402


# -------- Clientes de IA falsos --------
class FakeSTT:
    def __init__(self, text: str = "สวัสดีครับ") -> None:
        self.text = text
        self.fail = False
        self.calls = []

    def transcribe(self, path, language=None):
        # el archivo temporal existe mientras se transcribe
        self.calls.append({"path": Path(path), "exists": Path(path).exists(), "language": language})
        if self.fail:
            raise TranscriptionError("whisper unavailable")
        return self.text


class FakeLLM:
    def __init__(self, reply: str = "**สวัสดี** นี่คือ PiyanutAI") -> None:
        self.reply = reply
        self.fail = False
        self.calls = []

    def complete(self, messages):
        self.calls.append([dict(m) for m in messages])
        if self.fail:
            raise CompletionError("quota exceeded")
        return self.reply


class FakeTTS:
    def __init__(self, audio: bytes = b"ID3-fake-mp3") -> None:
        self.audio = audio
        self.fail = False
        self.calls = []

    def synthesize(self, text):
        self.calls.append(text)
        if self.fail:
            raise SynthesisError("voice unavailable")
        return self.audio


class FakeAI:
    def __init__(self) -> None:
        self.stt = FakeSTT()
        self.llm = FakeLLM()
        self.tts = FakeTTS()

    @property
    def call_count(self) -> int:
        return len(self.stt.calls) + len(self.llm.calls) + len(self.tts.calls)


@pytest.fixture
def temp_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest_asyncio.fixture
async def async_client():
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


@pytest_asyncio.fixture
async def fake_ai(async_client, temp_dir):
    """Reemplaza el pipeline de la app por uno con clientes falsos."""
    ai = FakeAI()
    cfg = app.state.settings.model_copy(update={"TEMP_DIR": str(temp_dir)})
    app.state.pipeline = ChatPipeline(cfg, app.state.store, stt=ai.stt, llm=ai.llm, tts=ai.tts)
    return ai


# -------- Helpers --------
async def _register(client: AsyncClient) -> str:
    email = f"test_{uuid.uuid4().hex[:8]}@example.com"
    payload = {"email": email, "password": "Secreta123", "name": "Piyanut Test"}
    r = await client.post("/auth/register", json=payload)
    assert r.status_code in (200, 201), r.text
    return email

async def _login(client: AsyncClient, email: str):
    r = await client.post("/auth/login", json={"email": email, "password": "Secreta123"})
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}

@pytest_asyncio.fixture
async def user_auth(async_client: AsyncClient):
    email = await _register(async_client)
    headers = await _login(async_client, email)
    return {"email": email, "headers": headers}

@pytest_asyncio.fixture
async def other_auth(async_client: AsyncClient):
    email = await _register(async_client)
    headers = await _login(async_client, email)
    return {"email": email, "headers": headers}

@pytest_asyncio.fixture
async def chat_id(async_client: AsyncClient, user_auth) -> str:
    r = await async_client.post("/chat", headers=user_auth["headers"])
    assert r.status_code == 201, r.text
    return r.json()["_id"]
