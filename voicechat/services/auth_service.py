# voicechat/services/auth_service.py
"""
Servicio de autenticación: validar usuario/contraseña y emitir JWT.
Limita intentos de login por cliente con la caché TTL de la app.
"""
from fastapi import HTTPException, status
from ..core.cache import TTLCache
from ..core.config import Settings
from ..core.errors import RateLimited
from ..core.security import create_jwt, verify_password
from ..models.user import UserStore


class AuthService:
    def __init__(self, user_repo: UserStore, cfg: Settings, cache: TTLCache) -> None:
        self.user_repo = user_repo
        self.cfg = cfg
        self.cache = cache

    def check_rate(self, client_key: str) -> None:
        hits = self.cache.incr(f"auth:{client_key}", ttl=self.cfg.AUTH_RATE_WINDOW_SECONDS)
        if hits > self.cfg.AUTH_RATE_LIMIT:
            raise RateLimited("Too many login attempts, try again later")

    async def authenticate(self, email: str, password: str, client_key: str) -> str:
        self.check_rate(client_key)

        user = await self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user["password_hash"]):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials"
            )

        # el email es el `sub` y el dueño de los chats
        return create_jwt({"sub": user["email"], "role": user["role"]}, self.cfg)
