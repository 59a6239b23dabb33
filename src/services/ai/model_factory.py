"""Centralized AI model factory for the design chat.

This module is the single source of truth for creating pydantic-ai models,
supporting both Gemini and Azure OpenAI providers based on configuration.

Usage:
    from services.ai.model_factory import get_chat_model, get_decision_model

    model = get_chat_model()  # Returns pydantic-ai Model
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.openai import OpenAIModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from core.config import get_settings


if TYPE_CHECKING:
    from httpx import AsyncClient

logger = logging.getLogger(__name__)

_NO_PROVIDER_MESSAGE = (
    "No valid LLM provider configured. Either set Azure OpenAI "
    "credentials (AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_API_KEY) "
    "or Gemini credentials (GEMINI_API_KEY)."
)

# Stored project parameter -> (ModelSettings key, lower bound, upper bound)
_GENERATION_PARAMETERS: dict[str, tuple[str, float, float]] = {
    "temperature": ("temperature", 0.0, 2.0),
    "topP": ("top_p", 0.0, 1.0),
    "maxOutputTokens": ("max_tokens", 1, 8192),
}


def _normalize_azure_endpoint(endpoint: str) -> str:
    """Strip trailing slashes; Azure returns 404 for ``//openai/...`` paths."""
    return endpoint.rstrip("/")


def _is_azure_provider() -> bool:
    return get_settings().LLM_PROVIDER == "azure_openai"


def _validate_azure_credentials() -> bool:
    """Validate that Azure OpenAI credentials are properly configured."""
    settings = get_settings()
    if (
        not settings.AZURE_OPENAI_ENDPOINT
        or not settings.AZURE_OPENAI_API_KEY
        or not settings.AZURE_OPENAI_API_VERSION
    ):
        logger.warning(
            "LLM_PROVIDER=azure_openai but credentials missing, falling back to Gemini"
        )
        return False
    return True


def _validate_gemini_credentials() -> bool:
    if not get_settings().GEMINI_API_KEY:
        logger.warning("Gemini API key not configured")
        return False
    return True


def _create_azure_model(
    model_name: str,
    http_client: AsyncClient | None = None,
) -> Model:
    """Create an Azure OpenAI model for the given deployment name."""
    from openai import AsyncAzureOpenAI

    settings = get_settings()
    # AZURE_OPENAI_ENDPOINT is validated in _validate_azure_credentials
    azure_client = AsyncAzureOpenAI(
        azure_endpoint=_normalize_azure_endpoint(settings.AZURE_OPENAI_ENDPOINT or ""),
        api_key=settings.AZURE_OPENAI_API_KEY,
        api_version=settings.AZURE_OPENAI_API_VERSION,
        http_client=http_client,
    )
    return OpenAIModel(model_name, provider=OpenAIProvider(openai_client=azure_client))


def _create_gemini_model(
    model_name: str,
    http_client: AsyncClient | None = None,
) -> Model:
    settings = get_settings()
    provider = GoogleProvider(
        api_key=settings.GEMINI_API_KEY,
        http_client=http_client,
    )
    return cast(Model, GoogleModel(model_name, provider=provider))


def _create_model(model_name: str, purpose: str, http_client: AsyncClient | None) -> Model:
    if _is_azure_provider() and _validate_azure_credentials():
        logger.info(f"Using Azure OpenAI {purpose} model: {model_name}")
        return _create_azure_model(model_name, http_client)

    # Fallback to Gemini - validate credentials
    if not _validate_gemini_credentials():
        raise ValueError(_NO_PROVIDER_MESSAGE)

    logger.info(f"Using Gemini {purpose} model: {model_name}")
    return _create_gemini_model(model_name, http_client)


def get_chat_model(http_client: AsyncClient | None = None) -> Model:
    """Get the streaming design chat model based on configuration.

    Args:
        http_client: Optional HTTP client for custom retry logic.

    Returns:
        A pydantic-ai Model configured for the selected provider.

    Raises:
        ValueError: If neither provider has credentials.
    """
    return _create_model(get_settings().CHAT_MODEL, "chat", http_client)


def get_decision_model(http_client: AsyncClient | None = None) -> Model:
    """Get the model used for the non-streaming image generation decision."""
    return _create_model(get_settings().DECISION_MODEL, "decision", http_client)


def parse_generation_config(llm_parameters: Any) -> ModelSettings | None:
    """Map a project's stored generation parameters onto pydantic-ai settings.

    Only numeric values inside the accepted ranges are used. Returns ``None``
    when nothing usable is set, so the model's defaults apply.
    """
    if not isinstance(llm_parameters, Mapping):
        return None

    config: dict[str, Any] = {}
    for stored_key, (settings_key, low, high) in _GENERATION_PARAMETERS.items():
        value = llm_parameters.get(stored_key)
        if isinstance(value, bool) or not isinstance(value, int | float):
            continue
        if not low <= value <= high:
            logger.warning(
                "Ignoring out-of-range generation parameter %s=%s", stored_key, value
            )
            continue
        config[settings_key] = int(value) if settings_key == "max_tokens" else value

    if not config:
        return None
    return cast(ModelSettings, config)
