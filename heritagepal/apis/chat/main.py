from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.apis.deps import CurrentUser, OptionalUser, get_generator, parse_level
from heritagepal.core.config import settings
from heritagepal.core.db.base import get_session
from heritagepal.core.db_services import ChatService, ContentService
from heritagepal.core.exceptions import ValidationError
from heritagepal.modules.chat.tutor import ChatTutor
from heritagepal.modules.generation import TextGenerator
from .schemas import ChatMessageRead, ChatRequest, ChatResponse, ChatSessionRead


router = APIRouter()

CONTEXT_ROWS = 5
CONTEXT_CHARS = 2000
HISTORY_MESSAGES = 5


@router.post(
    f"{settings.app.api_prefix}/chat/message",
    response_model=ChatResponse,
    tags=["chat"],
)
async def chat_message(
    req: ChatRequest,
    user: OptionalUser,
    session: AsyncSession = Depends(get_session),
    generator: TextGenerator = Depends(get_generator),
) -> ChatResponse:
    if not req.message or not req.message.strip():
        raise ValidationError("Please provide a message")
    chat = ChatService(session)
    session_id = req.sessionId or str(uuid.uuid4())
    level = parse_level(req.grade)

    history = [(m.role, m.content) for m in await chat.recent_messages(session_id, HISTORY_MESSAGES)]
    await chat.store_message(session_id, "user", req.message)
    if user is not None and not req.sessionId:
        await chat.link_session(user.id, session_id, req.message)

    rows = await ContentService(session).recent(grade=level, limit=CONTEXT_ROWS)
    context = "".join(
        f"{c.title}: {(c.processed_content or '')[:CONTEXT_CHARS] or 'No content available'}\n\n"
        for c in rows
    )

    reply = await ChatTutor(generator).reply(req.message, history, context, level)
    await chat.store_message(session_id, "assistant", reply)
    return ChatResponse(message=reply, sessionId=session_id)


@router.get(
    f"{settings.app.api_prefix}/chat/history",
    response_model=list[ChatSessionRead],
    tags=["chat"],
)
async def chat_sessions(
    user: CurrentUser, session: AsyncSession = Depends(get_session)
) -> list[ChatSessionRead]:
    rows = await ChatService(session).sessions_for_user(user.id)
    return [ChatSessionRead.model_validate(s) for s in rows]


@router.get(
    f"{settings.app.api_prefix}/chat/history/{{session_id}}",
    response_model=list[ChatMessageRead],
    tags=["chat"],
)
async def chat_history(
    session_id: str, session: AsyncSession = Depends(get_session)
) -> list[ChatMessageRead]:
    rows = await ChatService(session).history(session_id)
    return [ChatMessageRead.model_validate(m) for m in rows]
