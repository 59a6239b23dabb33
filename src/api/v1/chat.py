"""Design chat streaming endpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from core.exceptions import ProjectNotFoundError
from dependencies.design_chat import get_conversation_store, get_turn_orchestrator
from schemas.api import ErrorResponse
from schemas.chat_streaming import ChatTurnRequest
from services.design_chat.event_queue import TurnEventQueue
from services.design_chat.store import ConversationStore
from services.design_chat.turn_orchestrator import TurnOrchestrator, TurnSummary


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# Strong references so running turns are not garbage collected mid-flight.
running_turns: set[asyncio.Task[TurnSummary]] = set()


def _log_turn_task_result(task: asyncio.Task[TurnSummary]) -> None:
    running_turns.discard(task)
    if task.cancelled():
        logger.warning("Chat turn task was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Chat turn task crashed", exc_info=exc)
        return
    summary = task.result()
    logger.debug("Chat turn finished in state %s", summary.state)


@router.post(
    "",
    response_class=StreamingResponse,
    responses={
        status.HTTP_200_OK: {"content": {"text/event-stream": {}}},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse},
    },
)
async def stream_chat_turn(
    payload: ChatTurnRequest,
    orchestrator: Annotated[TurnOrchestrator, Depends(get_turn_orchestrator)],
    store: Annotated[ConversationStore, Depends(get_conversation_store)],
) -> StreamingResponse:
    """Stream the assistant's reply to one user message as SSE events.

    Emits ``chunk`` events with new message text, then exactly one ``done``
    or ``error`` event. The turn runs in its own task: if the client
    disconnects, it stops receiving events but the reply is still persisted.
    """
    if await store.get_project(payload.project_id) is None:
        raise ProjectNotFoundError(payload.project_id)

    queue = TurnEventQueue()
    task = asyncio.create_task(
        orchestrator.run(payload.project_id, payload.message, queue)
    )
    running_turns.add(task)
    task.add_done_callback(_log_turn_task_result)

    async def event_stream() -> AsyncGenerator[str, None]:
        try:
            async for event in queue:
                yield event.to_sse()
        finally:
            queue.detach()

    return StreamingResponse(
        event_stream(), media_type="text/event-stream", headers=SSE_HEADERS
    )
