"""
Dependencias comunes para FastAPI:
- current_user (via Authorization: Bearer <token>)
- current_store / current_users / current_pipeline / current_cache,
  todos leídos de app.state (construidos en el lifespan).
"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from ..core.cache import TTLCache
from ..core.config import Settings
from ..core.security import decode_jwt
from ..models.conversation import ConversationStore
from ..models.user import UserStore
from ..services.chat_pipeline import ChatPipeline

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def current_settings(request: Request) -> Settings:
    return request.app.state.settings

def current_store(request: Request) -> ConversationStore:
    return request.app.state.store

def current_users(request: Request) -> UserStore:
    return request.app.state.users

def current_pipeline(request: Request) -> ChatPipeline:
    return request.app.state.pipeline

def current_cache(request: Request) -> TTLCache:
    return request.app.state.cache

async def current_user(
    token: str = Depends(oauth2_scheme),
    cfg: Settings = Depends(current_settings),
) -> dict:
    try:
        payload = decode_jwt(token, cfg)
        return {"sub": payload["sub"], "role": payload.get("role")}
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
