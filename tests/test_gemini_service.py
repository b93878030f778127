"""
Tests for the Gemini service module.
"""

import httpx
import pytest
from unittest.mock import patch, MagicMock
from google.genai import errors

from ideaforge.errors import (
    ConfigurationError,
    TransientNetworkError,
    UpstreamError,
    UpstreamMalformedResponse,
    UpstreamRateLimited,
)
from ideaforge.services.ai_service import GenerationSettings
from ideaforge.services.gemini_service import GeminiService, translate_gemini_error


def client_error(code, message, status="INVALID_ARGUMENT"):
    return errors.ClientError(code, {"error": {"code": code, "message": message, "status": status}})


@pytest.fixture
def sample_messages():
    """Fixture providing a short alternating conversation."""
    return [
        {"role": "user", "content": "Original prompt:\n\n---\nBuild a habit tracker\n---"},
        {"role": "assistant", "content": "1. **Audience**: Who is it for?"},
        {"role": "user", "content": "Busy parents"},
    ]


@pytest.fixture
def mock_gemini_client():
    """Fixture providing a mocked Gemini client."""
    with patch('google.genai.Client') as mock_client:
        mock_client.return_value.models = MagicMock()
        mock_client.return_value.models.generate_content = MagicMock()
        yield mock_client


@pytest.fixture
def gemini_service(mock_gemini_client):
    """Fixture providing a GeminiService instance with mocked dependencies."""
    service = GeminiService(google_api_key="test_google_key", model="gemini-2.0-flash")
    # Replace the real client with our mocked one
    service.gemini_client = mock_gemini_client.return_value
    return service


class TestGeminiService:
    """Tests for the GeminiService class."""

    def test_init(self, mock_gemini_client):
        service = GeminiService(google_api_key="test_google_key", model="gemini-2.0-flash", timeout=30)

        assert service.model == "gemini-2.0-flash"
        kwargs = mock_gemini_client.call_args.kwargs
        assert kwargs["api_key"] == "test_google_key"
        assert kwargs["http_options"].timeout == 30000

    def test_missing_key(self, mock_gemini_client):
        with pytest.raises(ConfigurationError):
            GeminiService(google_api_key="", model="gemini-2.0-flash")

        mock_gemini_client.assert_not_called()

    def test_complete(self, gemini_service, sample_messages):
        mock_response = MagicMock()
        mock_response.text = '{"done": true, "enhancedPrompt": "# StreakNest"}'
        gemini_service.gemini_client.models.generate_content.return_value = mock_response
        settings = GenerationSettings(temperature=0.0, max_tokens=3000, seed=42, json_mode=True)

        result = gemini_service.complete("system prompt", sample_messages, settings)

        assert result == '{"done": true, "enhancedPrompt": "# StreakNest"}'
        kwargs = gemini_service.gemini_client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        assert [content.role for content in kwargs["contents"]] == ["user", "model", "user"]
        assert kwargs["contents"][2].parts[0].text == "Busy parents"
        config = kwargs["config"]
        assert config.system_instruction == "system prompt"
        assert config.temperature == 0.0
        assert config.max_output_tokens == 3000
        assert config.seed == 42
        assert config.response_mime_type == "application/json"

    def test_complete_empty_reply(self, gemini_service, sample_messages):
        mock_response = MagicMock()
        mock_response.text = None
        gemini_service.gemini_client.models.generate_content.return_value = mock_response

        with pytest.raises(UpstreamMalformedResponse):
            gemini_service.complete("system prompt", sample_messages, GenerationSettings(temperature=0.7, max_tokens=10))

    def test_complete_rate_limited(self, gemini_service, sample_messages):
        gemini_service.gemini_client.models.generate_content.side_effect = client_error(
            429, "Resource has been exhausted", "RESOURCE_EXHAUSTED"
        )

        with pytest.raises(UpstreamRateLimited):
            gemini_service.complete("system prompt", sample_messages, GenerationSettings(temperature=0.7, max_tokens=10))

    def test_research_uses_google_search(self, gemini_service):
        mock_response = MagicMock()
        mock_response.text = "Competitors: Habitica, Streaks"
        gemini_service.gemini_client.models.generate_content.return_value = mock_response

        assert gemini_service.research("habit trackers") == "Competitors: Habitica, Streaks"
        config = gemini_service.gemini_client.models.generate_content.call_args.kwargs["config"]
        assert config.tools[0].google_search is not None

    def test_research_timeout(self, gemini_service):
        gemini_service.gemini_client.models.generate_content.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(TransientNetworkError):
            gemini_service.research("habit trackers")


class TestTranslateGeminiError:
    """Tests for mapping SDK errors onto the error taxonomy."""

    @pytest.mark.parametrize("error, expected", [
        (client_error(401, "Unauthenticated", "UNAUTHENTICATED"), ConfigurationError),
        (client_error(403, "Permission denied", "PERMISSION_DENIED"), ConfigurationError),
        (client_error(400, "API key not valid. Please pass a valid API key."), ConfigurationError),
        (client_error(400, "Invalid JSON payload received."), UpstreamError),
        (client_error(429, "Resource has been exhausted", "RESOURCE_EXHAUSTED"), UpstreamRateLimited),
        (errors.ServerError(503, {"error": {"code": 503, "message": "Overloaded", "status": "UNAVAILABLE"}}),
         TransientNetworkError),
        (httpx.ConnectError("connection refused"), TransientNetworkError),
    ])
    def test_mapping(self, error, expected):
        assert isinstance(translate_gemini_error(error), expected)


if __name__ == "__main__":
    # This allows running the tests directly with python
    import sys
    sys.exit(pytest.main(["-v", __file__]))
