"""
Taxonomía de errores del chat.
Cada error lleva su status HTTP; el handler registrado en main los convierte
en JSON {message, error}. Los errores de APIs externas envuelven la causa
original (raise ... from exc).
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class ChatError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Error processing chat message"

    def __init__(self, detail: str | None = None, *, message: str | None = None) -> None:
        self.detail = detail or self.message
        if message is not None:
            self.message = message
        elif self.status_code < 500:
            # errores del cliente: el detalle ya es el mensaje legible
            self.message = self.detail
        super().__init__(self.detail)


class InvalidInput(ChatError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class NotFound(ChatError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Chat not found"


class TranscriptionError(ChatError):
    pass


class CompletionError(ChatError):
    pass


class SynthesisError(ChatError):
    pass


class StoreError(ChatError):
    pass


class RateLimited(ChatError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests"


async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "error": exc.detail},
    )
