"""pydantic-ai implementation of the design chat LLM collaborator."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any

from httpx import AsyncClient, HTTPStatusError
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.result import StreamedRunResult
from pydantic_ai.retries import AsyncTenacityTransport, RetryConfig, wait_retry_after
from pydantic_ai.settings import ModelSettings
from tenacity import retry_if_exception_type, stop_after_attempt, wait_exponential

from services.ai.interfaces import ChatPrompt, LLMCompletion
from services.ai.model_factory import get_chat_model, get_decision_model


logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 502, 503, 504)


def _create_resilient_http_client() -> AsyncClient:
    """Create an HTTP client with exponential backoff retries for transient errors.

    Handles API overload (503), rate limits (429), and gateway errors before
    a stream starts. Respects Retry-After headers when the provider sends them.
    """

    def should_retry_status(response: Any) -> None:
        if response.status_code in RETRYABLE_STATUS_CODES:
            response.raise_for_status()

    transport = AsyncTenacityTransport(
        config=RetryConfig(
            retry=retry_if_exception_type(HTTPStatusError),
            wait=wait_retry_after(
                fallback_strategy=wait_exponential(multiplier=2, min=1, max=30),
                max_wait=60,
            ),
            stop=stop_after_attempt(5),
            reraise=True,
        ),
        validate_response=should_retry_status,
    )
    return AsyncClient(transport=transport, timeout=120)


def _default_chat_model() -> Model:
    return get_chat_model(http_client=_create_resilient_http_client())


def _default_decision_model() -> Model:
    return get_decision_model(http_client=_create_resilient_http_client())


@dataclass(slots=True)
class TextChunk:
    """A text delta from ``stream_text(delta=True)``."""

    content: str

    def text(self) -> str:
        return self.content


class AgentTextStream:
    """Wraps an entered ``Agent.run_stream`` context as an ``LLMStream``."""

    def __init__(
        self, stack: AsyncExitStack, result: StreamedRunResult[None, str]
    ) -> None:
        self._stack = stack
        self._result = result
        self._closed = False

    async def __aiter__(self) -> AsyncIterator[TextChunk]:
        async for delta in self._result.stream_text(delta=True):
            if delta:
                yield TextChunk(delta)

    def usage(self) -> object:
        return self._result.usage()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._stack.aclose()


class PydanticAIDesignChatLLM:
    """Design chat collaborator backed by pydantic-ai agents.

    Models are injected or created lazily from ``model_factory`` on first use,
    so constructing the client never requires API keys.
    """

    def __init__(
        self,
        chat_model: Model | None = None,
        decision_model: Model | None = None,
        *,
        chat_model_factory: Callable[[], Model] = _default_chat_model,
        decision_model_factory: Callable[[], Model] = _default_decision_model,
    ) -> None:
        self._chat_model = chat_model
        self._decision_model = decision_model
        self._chat_model_factory = chat_model_factory
        self._decision_model_factory = decision_model_factory
        self._chat_agent: Agent[None, str] | None = None
        self._decision_agent: Agent[None, str] | None = None

    def _get_chat_agent(self) -> Agent[None, str]:
        if self._chat_agent is None:
            model = self._chat_model or self._chat_model_factory()
            self._chat_agent = Agent(model, output_type=str)
        return self._chat_agent

    def _get_decision_agent(self) -> Agent[None, str]:
        if self._decision_agent is None:
            model = self._decision_model or self._decision_model_factory()
            self._decision_agent = Agent(model, output_type=str)
        return self._decision_agent

    async def open_stream(self, prompt: ChatPrompt) -> AgentTextStream:
        agent = self._get_chat_agent()
        stack = AsyncExitStack()
        try:
            result = await stack.enter_async_context(
                agent.run_stream(prompt.text, model_settings=prompt.model_settings)
            )
        except BaseException:
            await stack.aclose()
            raise
        logger.debug("Opened design chat stream (%d prompt chars)", len(prompt.text))
        return AgentTextStream(stack, result)

    async def generate(
        self, prompt: str, model_settings: ModelSettings | None = None
    ) -> LLMCompletion:
        agent = self._get_decision_agent()
        result = await agent.run(prompt, model_settings=model_settings)
        return LLMCompletion(text=result.output, usage=result.usage())
