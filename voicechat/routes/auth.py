# voicechat/routes/auth.py
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, EmailStr
from ..core.deps import current_cache, current_settings, current_users
from ..models.user import UserCreate, UserPublic
from ..services.auth_service import AuthService

router = APIRouter()


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/register", response_model=UserPublic, response_model_by_alias=False, summary="Registrar usuario")
async def register(payload: UserCreate, users=Depends(current_users)):
    return await users.create(payload)


@router.post("/login", response_model=TokenOut, summary="Login y obtención de JWT")
async def login(
    payload: LoginIn,
    request: Request,
    users=Depends(current_users),
    cfg=Depends(current_settings),
    cache=Depends(current_cache),
):
    svc = AuthService(users, cfg, cache)
    client_key = request.client.host if request.client else "unknown"
    token = await svc.authenticate(payload.email, payload.password, client_key)
    return TokenOut(access_token=token)
