# voicechat/tests/test_text_turn.py
import pytest

pytestmark = pytest.mark.asyncio

async def test_text_turn_trims_but_keeps_markdown(async_client, user_auth, chat_id, fake_ai):
    headers = user_auth["headers"]
    fake_ai.llm.reply = "  **ตัวหนา** และ _เอียง_  \n"

    r = await async_client.post("/chat/message", headers=headers, json={"chatId": chat_id, "message": "สอนหน่อย"})
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "**ตัวหนา** และ _เอียง_"}

    # sin STT ni TTS en modo texto
    assert fake_ai.stt.calls == []
    assert fake_ai.tts.calls == []

    sent = fake_ai.llm.calls[0]
    assert sent[0]["role"] == "system"
    assert sent[-1] == {"role": "user", "content": "สอนหน่อย"}

    chat = (await async_client.get(f"/chat/{chat_id}", headers=headers)).json()
    assert [(m["role"], m["content"]) for m in chat["messages"]] == [
        ("user", "สอนหน่อย"),
        ("assistant", "**ตัวหนา** และ _เอียง_"),
    ]

async def test_blank_message_is_400(async_client, user_auth, chat_id, fake_ai):
    r = await async_client.post("/chat/message", headers=user_auth["headers"], json={"chatId": chat_id, "message": "   "})
    assert r.status_code == 400
    assert fake_ai.call_count == 0

async def test_malformed_body_is_400(async_client, user_auth, chat_id, fake_ai):
    r = await async_client.post("/chat/message", headers=user_auth["headers"], json={"chatId": chat_id})
    assert r.status_code == 400

    r2 = await async_client.post(
        "/chat/message",
        headers={**user_auth["headers"], "Content-Type": "application/json"},
        content=b"{not json",
    )
    assert r2.status_code == 400

    r3 = await async_client.post(
        "/chat/message",
        headers={**user_auth["headers"], "Content-Type": "text/plain"},
        content=b"hola",
    )
    assert r3.status_code == 400
    assert r3.json()["message"] == "Unsupported content type"

async def test_unknown_chat_is_404(async_client, user_auth, fake_ai):
    r = await async_client.post("/chat/message", headers=user_auth["headers"], json={"chatId": "nope", "message": "hola"})
    assert r.status_code == 404
    assert fake_ai.call_count == 0

async def test_completion_failure_is_500_and_persists_nothing(async_client, user_auth, chat_id, fake_ai):
    headers = user_auth["headers"]
    fake_ai.llm.fail = True

    r = await async_client.post("/chat/message", headers=headers, json={"chatId": chat_id, "message": "hola"})
    assert r.status_code == 500
    assert r.json() == {"message": "Error processing chat message", "error": "quota exceeded"}

    chat = (await async_client.get(f"/chat/{chat_id}", headers=headers)).json()
    assert chat["messages"] == []
