"""
Abstract base class for the model collaborators used in IdeaForge.
This provides a common interface for different model providers.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Optional

from pydantic import BaseModel, ConfigDict


class GenerationSettings(BaseModel):
    """Generation parameters passed to the model on every call."""

    model_config = ConfigDict(frozen=True)

    temperature: float
    max_tokens: int
    seed: Optional[int] = None
    json_mode: bool = False


class AIService(ABC):
    """Abstract base class for model services."""

    @abstractmethod
    def complete(self, system_prompt: str, messages: List[Dict[str, str]], settings: GenerationSettings) -> str:
        """
        Run one completion and return the raw text of the reply.

        Args:
            system_prompt: Fixed instruction set for this call
            messages: Ordered list of {"role": "user" | "assistant", "content": str}
            settings: Generation parameters

        Returns:
            The reply text (a JSON document when ``settings.json_mode`` is set)

        Raises:
            ConfigurationError, UpstreamRateLimited, TransientNetworkError,
            UpstreamMalformedResponse (empty reply) or UpstreamError
        """
        pass

    @abstractmethod
    def research(self, query: str) -> str:
        """
        Run a web-search grounded query and return its findings as text.

        Args:
            query: The research request

        Returns:
            The findings, or an empty string when nothing was returned
        """
        pass
