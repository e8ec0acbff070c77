# voicechat/routes/chat.py
import logging
from typing import List, Union

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from ..core.deps import current_pipeline, current_store, current_user
from ..core.errors import ChatError, InvalidInput
from ..models.conversation import ConversationPublic, ConversationStore
from ..services.chat_pipeline import ChatPipeline

router = APIRouter()
log = logging.getLogger(__name__)


class TextMessageIn(BaseModel):
    chatId: str
    message: str


class VoiceReply(BaseModel):
    message: str
    audio: str
    transcription: str


class TextReply(BaseModel):
    message: str


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ConversationPublic,
    summary="Crear chat vacío",
)
async def create_chat(store: ConversationStore = Depends(current_store), user=Depends(current_user)):
    return await store.create(user["sub"])


@router.get(
    "",
    response_model=List[ConversationPublic],
    summary="Mis chats (más reciente primero)",
)
async def list_chats(store: ConversationStore = Depends(current_store), user=Depends(current_user)):
    return await store.list(user["sub"])


async def _guarded(turn):
    """Cualquier fallo inesperado del turno sale como 500 {message, error}."""
    try:
        return await turn
    except ChatError:
        raise
    except Exception as e:
        log.exception(f"[chat] turn failed: {e}")
        raise ChatError(str(e)) from e


@router.post(
    "/message",
    response_model=Union[VoiceReply, TextReply],
    summary="Enviar turno de voz (multipart) o de texto (JSON)",
)
async def send_message(
    request: Request,
    pipeline: ChatPipeline = Depends(current_pipeline),
    user=Depends(current_user),
):
    """
    multipart/form-data: chatId + audioBlob → {message, audio(base64), transcription}
    application/json:    {chatId, message}  → {message}
    """
    ctype = request.headers.get("content-type", "").lower()

    if ctype.startswith("multipart/form-data"):
        form = await request.form()
        chat_id = form.get("chatId")
        upload = form.get("audioBlob")
        if not isinstance(upload, UploadFile):
            raise InvalidInput("No audio file provided")
        if not isinstance(chat_id, str) or not chat_id.strip():
            raise InvalidInput("Missing chatId")
        data = await upload.read()
        result = await _guarded(pipeline.voice_turn(chat_id.strip(), user["sub"], data, upload.content_type or ""))
        return VoiceReply(message=result.message, audio=result.audio, transcription=result.transcription)

    if ctype.startswith("application/json"):
        try:
            payload = TextMessageIn.model_validate(await request.json())
        except (ValueError, ValidationError):
            raise InvalidInput("Body must be JSON with chatId and message")
        result = await _guarded(pipeline.text_turn(payload.chatId, user["sub"], payload.message))
        return TextReply(message=result.message)

    raise InvalidInput("Unsupported content type")


@router.get(
    "/{chat_id}",
    response_model=ConversationPublic,
    summary="Obtener un chat propio",
)
async def get_chat(chat_id: str, store: ConversationStore = Depends(current_store), user=Depends(current_user)):
    return await store.get(chat_id, user["sub"])


@router.delete("/{chat_id}", summary="Borrar un chat propio")
async def delete_chat(chat_id: str, store: ConversationStore = Depends(current_store), user=Depends(current_user)):
    await store.delete(chat_id, user["sub"])
    return {"message": "Chat deleted successfully"}
