"""Tests for the centralized AI model factory."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from pydantic_ai import models

from services.ai.model_factory import (
    _is_azure_provider,
    _normalize_azure_endpoint,
    _validate_azure_credentials,
    _validate_gemini_credentials,
    get_chat_model,
    get_decision_model,
    parse_generation_config,
)


# Block any real model requests in tests
models.ALLOW_MODEL_REQUESTS = False


def _azure_settings(mock_settings: MagicMock) -> None:
    mock_settings.return_value.AZURE_OPENAI_ENDPOINT = "https://test.openai.azure.com/"
    mock_settings.return_value.AZURE_OPENAI_API_KEY = "test-key"
    mock_settings.return_value.AZURE_OPENAI_API_VERSION = "2024-10-21"


class TestIsAzureProvider:
    """Tests for _is_azure_provider function."""

    @patch("services.ai.model_factory.get_settings")
    def test_returns_true_when_azure_openai(self, mock_settings: MagicMock) -> None:
        mock_settings.return_value.LLM_PROVIDER = "azure_openai"
        assert _is_azure_provider() is True

    @patch("services.ai.model_factory.get_settings")
    def test_returns_false_when_gemini(self, mock_settings: MagicMock) -> None:
        mock_settings.return_value.LLM_PROVIDER = "gemini"
        assert _is_azure_provider() is False


class TestValidateCredentials:
    """Tests for the provider credential checks."""

    @patch("services.ai.model_factory.get_settings")
    def test_azure_valid(self, mock_settings: MagicMock) -> None:
        _azure_settings(mock_settings)
        assert _validate_azure_credentials() is True

    @patch("services.ai.model_factory.get_settings")
    def test_azure_missing_api_version(
        self, mock_settings: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        _azure_settings(mock_settings)
        mock_settings.return_value.AZURE_OPENAI_API_VERSION = None

        assert _validate_azure_credentials() is False
        assert "credentials missing" in caplog.text.lower()

    @patch("services.ai.model_factory.get_settings")
    def test_gemini_missing_key(
        self, mock_settings: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_settings.return_value.GEMINI_API_KEY = None

        assert _validate_gemini_credentials() is False
        assert "not configured" in caplog.text.lower()


def test_normalize_azure_endpoint_strips_trailing_slashes() -> None:
    assert (
        _normalize_azure_endpoint("https://x.openai.azure.com//")
        == "https://x.openai.azure.com"
    )


class TestGetModels:
    """Tests for get_chat_model and get_decision_model."""

    @patch("services.ai.model_factory._is_azure_provider", return_value=True)
    @patch("services.ai.model_factory.get_settings")
    def test_chat_model_uses_azure_when_configured(
        self, mock_settings: MagicMock, _mock_is_azure: MagicMock
    ) -> None:
        _azure_settings(mock_settings)
        mock_settings.return_value.CHAT_MODEL = "gpt-4o"

        model = get_chat_model()

        assert "OpenAI" in type(model).__name__
        assert model.model_name == "gpt-4o"

    @patch("services.ai.model_factory._is_azure_provider", return_value=False)
    @patch("services.ai.model_factory.get_settings")
    def test_chat_model_uses_gemini_by_default(
        self, mock_settings: MagicMock, _mock_is_azure: MagicMock
    ) -> None:
        mock_settings.return_value.CHAT_MODEL = "gemini-2.5-flash"
        mock_settings.return_value.GEMINI_API_KEY = "test-gemini-key"

        model = get_chat_model()

        assert "Google" in type(model).__name__

    @patch("services.ai.model_factory._validate_azure_credentials", return_value=False)
    @patch("services.ai.model_factory._is_azure_provider", return_value=True)
    @patch("services.ai.model_factory.get_settings")
    def test_falls_back_to_gemini_on_invalid_azure_credentials(
        self,
        mock_settings: MagicMock,
        _mock_is_azure: MagicMock,
        _mock_validate: MagicMock,
    ) -> None:
        mock_settings.return_value.CHAT_MODEL = "gemini-2.5-flash"
        mock_settings.return_value.GEMINI_API_KEY = "test-gemini-key"

        assert "Google" in type(get_chat_model()).__name__

    @patch("services.ai.model_factory._is_azure_provider", return_value=False)
    @patch("services.ai.model_factory.get_settings")
    def test_decision_model_uses_its_own_name(
        self, mock_settings: MagicMock, _mock_is_azure: MagicMock
    ) -> None:
        mock_settings.return_value.CHAT_MODEL = "gemini-2.5-pro"
        mock_settings.return_value.DECISION_MODEL = "gemini-2.5-flash-lite"
        mock_settings.return_value.GEMINI_API_KEY = "test-gemini-key"

        assert get_decision_model().model_name == "gemini-2.5-flash-lite"

    @patch("services.ai.model_factory._is_azure_provider", return_value=False)
    @patch("services.ai.model_factory.get_settings")
    def test_raises_without_any_provider(
        self, mock_settings: MagicMock, _mock_is_azure: MagicMock
    ) -> None:
        mock_settings.return_value.GEMINI_API_KEY = None

        with pytest.raises(ValueError, match="No valid LLM provider"):
            get_chat_model()


class TestParseGenerationConfig:
    """Tests for mapping stored project parameters to ModelSettings."""

    def test_maps_all_known_parameters(self) -> None:
        config = parse_generation_config(
            {"temperature": 0.7, "topP": 0.95, "maxOutputTokens": 1024.0}
        )
        assert config == {"temperature": 0.7, "top_p": 0.95, "max_tokens": 1024}
        assert isinstance(config["max_tokens"], int)

    @pytest.mark.parametrize("value", [None, "not a dict", [], {}])
    def test_returns_none_without_usable_parameters(self, value: object) -> None:
        assert parse_generation_config(value) is None

    def test_skips_non_numeric_and_boolean_values(self) -> None:
        assert parse_generation_config({"temperature": "hot", "topP": True}) is None

    def test_skips_out_of_range_values(self, caplog: pytest.LogCaptureFixture) -> None:
        config = parse_generation_config(
            {"temperature": 3.5, "topP": 0.5, "maxOutputTokens": 0}
        )
        assert config == {"top_p": 0.5}
        assert "out-of-range" in caplog.text

    def test_ignores_unsupported_keys(self) -> None:
        assert parse_generation_config({"topK": 40, "temperature": 0}) == {
            "temperature": 0
        }
