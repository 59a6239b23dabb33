"""One design chat turn, from user message to terminal SSE event.

States::

    RECEIVED -> STREAMING -> FINALIZED -> DECIDED -> COMPLETE
                    \\-> FAILED

The user message is persisted before any model call and is kept even when
the turn fails. After the stream finishes, the assistant message, token
usage and image decision are each handled exactly once. Only a failure to
stream at all is reported to the client as an ``error`` event; everything
else degrades to a defined fallback and the turn still ends with ``done``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic_ai.settings import ModelSettings

from core.error_handler import StructuredLogger
from schemas.design_chat import StructuredTurnResult, TokenUsage, TurnResult
from services.ai.interfaces import ChatPrompt, DesignChatLLM
from services.ai.model_factory import parse_generation_config
from services.design_chat.errors import user_friendly_error_message
from services.design_chat.event_queue import TurnEventQueue
from services.design_chat.image_decision import decide_image_generation
from services.design_chat.outcomes import Fatal, Ok
from services.design_chat.prompts import build_chat_prompt, format_transcript
from services.design_chat.store import ConversationStore, StoredMessage
from services.design_chat.stream_relay import StreamRelay


logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)


class TurnState(StrEnum):
    RECEIVED = "received"
    STREAMING = "streaming"
    FINALIZED = "finalized"
    DECIDED = "decided"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(slots=True)
class TurnSummary:
    """How a turn ended; the client already received the matching event."""

    state: TurnState
    message: str | None = None
    should_generate_image: bool = False
    structured: bool = False
    usage: TokenUsage = field(default_factory=TokenUsage)
    error: str | None = None


class TurnOrchestrator:
    """Runs design chat turns against injected model and storage collaborators."""

    def __init__(
        self,
        llm: DesignChatLLM,
        store: ConversationStore,
        max_history_messages: int | None = None,
    ) -> None:
        self._llm = llm
        self._store = store
        self._max_history_messages = max_history_messages

    async def run(
        self, project_id: str, user_message: str, sink: TurnEventQueue
    ) -> TurnSummary:
        """Run one turn, writing its events to ``sink``. Never raises."""
        relay = StreamRelay(self._llm, sink)
        state = TurnState.RECEIVED
        try:
            project = await self._store.get_project(project_id)
            if project is None:
                reason = f"Project with id {project_id} not found"
                relay.fail(reason)
                return TurnSummary(TurnState.FAILED, error=reason)

            user_persisted = await self._persist(project_id, "user", user_message)
            history = await self._load_history(project_id, user_message, user_persisted)
            transcript = format_transcript(history)
            model_settings = parse_generation_config(project.llm_parameters)
            prompt = ChatPrompt(
                text=build_chat_prompt(project.custom_system_prompt, transcript),
                model_settings=model_settings,
            )

            state = TurnState.STREAMING
            structured_logger.info(
                "Design chat turn started",
                project_id=project_id,
                history_messages=len(history),
                prompt_chars=len(prompt.text),
            )
            outcome = await relay.run(prompt)
            if isinstance(outcome, Fatal):
                relay.fail(outcome.reason)
                structured_logger.warning(
                    "Design chat turn failed while streaming", project_id=project_id
                )
                return TurnSummary(TurnState.FAILED, error=outcome.reason)

            state = TurnState.FINALIZED
            relayed = outcome.value
            result = relayed.result
            await self._persist(
                project_id,
                "assistant",
                result.message,
                result.to_content_json()
                if isinstance(result, StructuredTurnResult)
                else None,
            )
            await self._record_usage(project_id, relayed.usage)

            should_generate, decision_usage = await self._resolve_decision(
                result, transcript, model_settings
            )
            await self._record_usage(project_id, decision_usage)
            state = TurnState.DECIDED

            relay.close(result.message, should_generate)
            structured_logger.info(
                "Design chat turn complete",
                project_id=project_id,
                structured=isinstance(outcome, Ok),
                chunks=relayed.chunks_emitted,
                input_tokens=relayed.usage.input_tokens,
                output_tokens=relayed.usage.output_tokens,
                should_generate_image=should_generate,
            )
            return TurnSummary(
                TurnState.COMPLETE,
                message=result.message,
                should_generate_image=should_generate,
                structured=isinstance(result, StructuredTurnResult),
                usage=relayed.usage + decision_usage,
            )
        except Exception as exc:
            structured_logger.exception(
                "Design chat turn crashed", project_id=project_id, state=str(state)
            )
            reason = user_friendly_error_message(exc)
            relay.fail(reason)
            return TurnSummary(TurnState.FAILED, error=reason)
        finally:
            sink.close()

    async def _persist(
        self,
        project_id: str,
        role: str,
        content: str,
        content_json: dict | None = None,
    ) -> bool:
        try:
            await self._store.append_message(project_id, role, content, content_json)
        except Exception:
            structured_logger.exception(
                "Failed to persist chat message", project_id=project_id, role=role
            )
            return False
        return True

    async def _load_history(
        self, project_id: str, user_message: str, user_persisted: bool
    ) -> list[StoredMessage]:
        try:
            history = await self._store.list_messages(
                project_id, limit=self._max_history_messages
            )
        except Exception:
            structured_logger.exception(
                "Failed to load conversation history", project_id=project_id
            )
            history = []
            user_persisted = False

        if not user_persisted:
            history.append(StoredMessage("user", user_message))
            if self._max_history_messages is not None:
                history = history[-self._max_history_messages :]
        return history

    async def _record_usage(self, project_id: str, usage: TokenUsage) -> None:
        if not usage.has_tokens:
            return
        try:
            await self._store.add_usage(project_id, usage)
        except Exception:
            structured_logger.exception(
                "Failed to record token usage",
                project_id=project_id,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
            )

    async def _resolve_decision(
        self,
        result: TurnResult,
        transcript: str,
        model_settings: ModelSettings | None,
    ) -> tuple[bool, TokenUsage]:
        if isinstance(result, StructuredTurnResult):
            return result.should_generate_image, TokenUsage()

        decision = await decide_image_generation(
            self._llm, transcript, result.message, model_settings
        )
        if not isinstance(decision, Ok):
            logger.info("Image decision fell back: %s", decision.reason)
        return decision.value.should_generate, decision.value.usage
