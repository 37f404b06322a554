"""
Chat API.

POST /v1/ai-analyst-chat — One persona-flavoured answer, grounded in uploaded
                           documents or online research
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db
from ..services.chat import answer_question

logger = logging.getLogger(__name__)

chat_router = APIRouter(tags=["chat"])


class ChatTurn(BaseModel):
    role: str  # user, assistant
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    persona_id: Optional[str] = None
    conversation_history: list[ChatTurn] = Field(default_factory=list, alias="conversationHistory")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    sources: list[str] = []
    is_online_search: bool = Field(default=False, alias="isOnlineSearch")
    success: bool = True


@chat_router.post("/ai-analyst-chat", response_model=ChatResponse)
async def ai_analyst_chat(
    request: ChatRequest,
    db: AsyncSession = Depends(get_db),
):
    """Answer a question as the selected persona."""
    logger.info("AI analyst chat request (persona=%s)", request.persona_id)

    reply = await answer_question(
        db,
        message=request.message,
        persona_id=request.persona_id,
        conversation_history=[t.model_dump() for t in request.conversation_history],
    )
    return ChatResponse(
        response=reply.response,
        sources=reply.sources,
        is_online_search=reply.is_online_search,
    )
