"""
OpenAI service implementation for IdeaForge.
Handles completions and web-search grounded research using OpenAI models.
"""

from typing import List, Dict, Any

import openai
from openai import OpenAI

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


def translate_openai_error(error: openai.OpenAIError) -> IdeaForgeError:
    """Map an OpenAI SDK exception onto the IdeaForge error taxonomy."""
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ConfigurationError("OpenAI API key is invalid or not configured.")
    if isinstance(error, openai.RateLimitError):
        if "quota" in str(error).lower():
            return UpstreamRateLimited("OpenAI API quota exceeded. Please check your billing.")
        return UpstreamRateLimited()
    if isinstance(error, openai.APITimeoutError):
        return TransientNetworkError("The AI provider took too long to respond. Please try again.")
    if isinstance(error, (openai.APIConnectionError, openai.InternalServerError)):
        return TransientNetworkError()
    return UpstreamError(f"OpenAI request failed: {error}")


class OpenAIService(AIService):
    """OpenAI service implementation."""

    def __init__(self, api_key: str, model: str, search_model: str, timeout: float = UPSTREAM_TIMEOUT_SECONDS):
        """
        Initialize the OpenAI service.

        Args:
            api_key: OpenAI API key
            model: OpenAI model used for completions
            search_model: OpenAI model used for web-search grounded research
            timeout: Seconds before an outbound call is abandoned
        """
        if not api_key or not api_key.strip():
            logger.error("OPENAI_API_KEY is not configured")
            raise ConfigurationError("OpenAI API key is not configured. Please set OPENAI_API_KEY.")

        self.model = model
        self.search_model = search_model
        # Retries are owned by the orchestrator, not the SDK
        self.client = OpenAI(api_key=api_key.strip(), timeout=timeout, max_retries=0)

    def complete(self, system_prompt: str, messages: List[Dict[str, str]], settings: GenerationSettings) -> str:
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "temperature": settings.temperature,
            "max_tokens": settings.max_tokens,
        }
        if settings.seed is not None:
            request["seed"] = settings.seed
        if settings.json_mode:
            request["response_format"] = {"type": "json_object"}

        logger.info(f"Calling OpenAI model {self.model} with {len(messages)} message(s)")
        try:
            completion = self.client.chat.completions.create(**request)
        except openai.OpenAIError as e:
            error = translate_openai_error(e)
            logger.error(f"OpenAI completion failed ({error.code}): {e}")
            raise error from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise UpstreamMalformedResponse("No response generated from OpenAI")
        logger.debug("Response received from OpenAI")
        return content

    def research(self, query: str) -> str:
        logger.info(f"Running web research with {self.search_model}")
        try:
            completion = self.client.chat.completions.create(
                model=self.search_model,
                web_search_options={},
                messages=[{"role": "user", "content": query}],
            )
        except openai.OpenAIError as e:
            error = translate_openai_error(e)
            logger.error(f"OpenAI web research failed ({error.code}): {e}")
            raise error from e

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""
