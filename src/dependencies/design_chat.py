"""Dependencies wiring the design chat collaborators into request handlers.

The model client and conversation store are created once in the app lifespan
and kept on ``app.state``; tests swap them through ``dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from core.config import get_settings
from services.ai.interfaces import DesignChatLLM
from services.design_chat.store import ConversationStore
from services.design_chat.turn_orchestrator import TurnOrchestrator


def get_design_chat_llm(request: Request) -> DesignChatLLM:
    return request.app.state.design_chat_llm


def get_conversation_store(request: Request) -> ConversationStore:
    return request.app.state.conversation_store


def get_turn_orchestrator(
    llm: Annotated[DesignChatLLM, Depends(get_design_chat_llm)],
    store: Annotated[ConversationStore, Depends(get_conversation_store)],
) -> TurnOrchestrator:
    return TurnOrchestrator(
        llm, store, max_history_messages=get_settings().MAX_HISTORY_MESSAGES
    )
