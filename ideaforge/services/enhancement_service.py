"""
Prompt enhancement endpoint.

Stateless: every call carries the original prompt and, for the continue
phase, the full transcript so far. The service never touches the usage ledger.
"""

from typing import Iterable

from ideaforge.constants import ENHANCEMENT_MAX_TOKENS, ENHANCEMENT_TEMPERATURE
from ideaforge.errors import InvalidInput
from ideaforge.models.conversation import EnhancementResult, Phase, Transcript, Turn, parse_enhancement_response
from ideaforge.services.ai_service import AIService, GenerationSettings
from ideaforge.utils.logger import logger
from ideaforge.utils.prompts import load_prompt

ENHANCEMENT_SETTINGS = GenerationSettings(
    temperature=ENHANCEMENT_TEMPERATURE,
    max_tokens=ENHANCEMENT_MAX_TOKENS,
    json_mode=True,
)


class EnhancementService:
    """Asks clarifying questions about a prompt, then writes the enhanced prompt."""

    def __init__(self, ai_service: AIService):
        self.ai_service = ai_service

    def analyze(self, original_prompt: str) -> EnhancementResult:
        """First turn: ask targeted questions about the prompt's biggest gaps."""
        self._require_prompt(original_prompt)
        messages = [
            {
                "role": "user",
                "content": (
                    f"Here is the original app prompt I want to enhance:\n\n---\n{original_prompt}\n---\n\n"
                    "Please analyze it deeply and ask me targeted questions about the most critical gaps."
                ),
            }
        ]
        logger.info("Analyzing prompt for enhancement")
        return self._run(load_prompt("enhance_analyze"), messages)

    def continue_conversation(self, original_prompt: str, transcript: Iterable[Turn]) -> EnhancementResult:
        """Later turns: either ask follow-ups or return the enhanced prompt."""
        self._require_prompt(original_prompt)
        transcript = transcript if isinstance(transcript, Transcript) else Transcript(transcript)
        if not len(transcript):
            raise InvalidInput("A conversation transcript is required to continue.")

        messages = [
            {"role": "user", "content": f"Original prompt:\n\n---\n{original_prompt}\n---"},
            *transcript.as_messages(),
        ]
        logger.info(f"Continuing enhancement conversation with {len(transcript)} turn(s)")
        return self._run(load_prompt("enhance_continue"), messages)

    def respond(self, phase: Phase, original_prompt: str, transcript: Iterable[Turn] = ()) -> EnhancementResult:
        if Phase(phase) == Phase.ANALYZE:
            return self.analyze(original_prompt)
        return self.continue_conversation(original_prompt, transcript)

    def _run(self, system_prompt: str, messages) -> EnhancementResult:
        content = self.ai_service.complete(system_prompt, messages, ENHANCEMENT_SETTINGS)
        return parse_enhancement_response(content)

    @staticmethod
    def _require_prompt(original_prompt: str) -> None:
        if not original_prompt or not original_prompt.strip():
            raise InvalidInput("Original prompt is required")
