# voicechat/main.py
"""
App FastAPI: CORS, lifespan (startup/shutdown), routers, handler de errores
del chat + middleware de trazas.
"""
import logging, time

# cargar .env ANTES de construir Settings
from dotenv import load_dotenv, find_dotenv
load_dotenv(find_dotenv(usecwd=True), override=False)

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .core.cache import TTLCache
from .core.config import Settings, settings
from .core.errors import ChatError, chat_error_handler
from .db.mongo import connect_to_mongo, disconnect_from_mongo
from .models.conversation import ConversationRepo, InMemoryConversationRepo
from .models.user import InMemoryUserRepo, UserRepo
from .routes import auth, chat, users
from .services.chat_pipeline import ChatPipeline
from .services.completion import ChatCompletionClient
from .services.stt_tts import SpeechToTextClient, TextToSpeechClient
from .telemetry.logging import setup_logging

setup_logging(settings.LOG_LEVEL)
http_logger = logging.getLogger("voicechat.http")


def build_state(app: FastAPI, cfg: Settings) -> None:
    """Arma stores, clientes de IA, pipeline y caché sobre app.state."""
    if cfg.STORE_BACKEND == "memory":
        app.state.store = InMemoryConversationRepo()
        app.state.users = InMemoryUserRepo()
    else:
        db = connect_to_mongo(cfg)
        app.state.store = ConversationRepo(db)
        app.state.users = UserRepo(db)

    app.state.settings = cfg
    app.state.cache = TTLCache(cfg.CACHE_TTL_SECONDS)
    app.state.pipeline = ChatPipeline(
        cfg,
        app.state.store,
        stt=SpeechToTextClient(cfg),
        llm=ChatCompletionClient(cfg),
        tts=TextToSpeechClient(cfg),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = settings
    build_state(app, cfg)
    yield
    if cfg.STORE_BACKEND != "memory":
        disconnect_from_mongo()

app = FastAPI(title="Voice Chat API", version="0.1.0", lifespan=lifespan)

# ---------------- CORS ----------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ChatError, chat_error_handler)

# ---------------- Middleware de trazas ----------------
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        dur = round(time.time() - start, 4)
        http_logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {dur}s")
        return response
    except Exception as e:
        dur = round(time.time() - start, 4)
        http_logger.exception(f"{request.method} {request.url.path} EXC after {dur}s: {e}")
        raise

# ---------------- Healthcheck ----------------
@app.get("/health", tags=["misc"])
async def health():
    return {"ok": True}

# ---------------- Routers ----------------
app.include_router(auth.router,  prefix="/auth",  tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(chat.router,  prefix="/chat",  tags=["chat"])
