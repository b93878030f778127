"""
Gemini service implementation for IdeaForge.
Handles completions and Google Search grounded research using Google's Gemini models.
"""

from typing import List, Dict

import httpx
from google import genai
from google.genai import errors, types

from ideaforge.constants import UPSTREAM_TIMEOUT_SECONDS
from ideaforge.errors import (
    ConfigurationError,
    IdeaForgeError,
    TransientNetworkError,
    UpstreamError,
    UpstreamMalformedResponse,
    UpstreamRateLimited,
)
from ideaforge.services.ai_service import AIService, GenerationSettings
from ideaforge.utils.logger import logger

# Gemini calls the assistant side of a conversation "model"
ROLE_MAP = {"user": "user", "assistant": "model"}


def translate_gemini_error(error: Exception) -> IdeaForgeError:
    """Map a google-genai or transport exception onto the IdeaForge error taxonomy."""
    if isinstance(error, errors.ClientError):
        if error.code in (401, 403):
            return ConfigurationError("Google AI API key is invalid or not configured.")
        if error.code == 429:
            return UpstreamRateLimited()
        if error.code == 400 and "api key" in str(error).lower():
            return ConfigurationError("Google AI API key is invalid or not configured.")
        return UpstreamError(f"Gemini request failed: {error}")
    if isinstance(error, errors.ServerError):
        return TransientNetworkError()
    if isinstance(error, httpx.TimeoutException):
        return TransientNetworkError("The AI provider took too long to respond. Please try again.")
    if isinstance(error, httpx.TransportError):
        return TransientNetworkError()
    return UpstreamError(f"Gemini request failed: {error}")


class GeminiService(AIService):
    """Gemini service implementation."""

    def __init__(self, google_api_key: str, model: str, timeout: float = UPSTREAM_TIMEOUT_SECONDS):
        """
        Initialize the Gemini service.

        Args:
            google_api_key: Google AI API key
            model: Gemini model to use
            timeout: Seconds before an outbound call is abandoned
        """
        if not google_api_key or not google_api_key.strip():
            logger.error("GOOGLE_AI_API_KEY is not configured")
            raise ConfigurationError("Google AI API key is not configured. Please set GOOGLE_AI_API_KEY.")

        self.model = model
        self.gemini_client = genai.Client(
            api_key=google_api_key.strip(),
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def complete(self, system_prompt: str, messages: List[Dict[str, str]], settings: GenerationSettings) -> str:
        contents = [
            types.Content(role=ROLE_MAP[message["role"]], parts=[types.Part(text=message["content"])])
            for message in messages
        ]
        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=settings.temperature,
            max_output_tokens=settings.max_tokens,
            seed=settings.seed,
            response_mime_type="application/json" if settings.json_mode else None,
        )

        logger.info(f"Calling Gemini model {self.model} with {len(messages)} message(s)")
        try:
            response = self.gemini_client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config
            )
        except (errors.APIError, httpx.HTTPError) as e:
            error = translate_gemini_error(e)
            logger.error(f"Gemini completion failed ({error.code}): {e}")
            raise error from e

        text_content = response.text
        if not text_content or not text_content.strip():
            raise UpstreamMalformedResponse("No response generated from Gemini")
        return text_content

    def research(self, query: str) -> str:
        logger.info(f"Running Google Search grounded research with {self.model}")
        try:
            response = self.gemini_client.models.generate_content(
                model=self.model,
                contents=query,
                config=types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                ),
            )
        except (errors.APIError, httpx.HTTPError) as e:
            error = translate_gemini_error(e)
            logger.error(f"Gemini web research failed ({error.code}): {e}")
            raise error from e

        return response.text or ""
