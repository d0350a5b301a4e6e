from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.errors import DomainError
from core.use_cases.chat_use_cases import ChatBot
from infrastructure.web.dependencies import get_chatbot, http_error

router = APIRouter(prefix="/chat", tags=["chat"])


class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    reply: str


class QuickAction(BaseModel):
    text: str
    prompt: str


class QuickActionsResponse(BaseModel):
    greeting: str
    actions: List[QuickAction]


@router.post("", response_model=ChatResponse)
def chat(payload: ChatRequest, bot: ChatBot = Depends(get_chatbot)):
    try:
        return ChatResponse(reply=bot.reply(payload.message))
    except DomainError as e:
        raise http_error(e)


@router.get("/quick-actions", response_model=QuickActionsResponse)
def quick_actions(bot: ChatBot = Depends(get_chatbot)):
    return QuickActionsResponse(
        greeting=bot.greeting(),
        actions=[QuickAction(**a) for a in bot.quick_actions()],
    )
