"""
Idea validation endpoint.

Runs a best-effort grounding retrieval, then a deterministic scoring call, and
returns a strictly validated scorecard.
"""

import json

from pydantic import ValidationError

from ideaforge.constants import (
    DEGRADED_RESEARCH_NOTE,
    EMPTY_RESEARCH_NOTE,
    NOT_SPECIFIED,
    UNTITLED_APP,
    VALIDATION_MAX_TOKENS,
    VALIDATION_SEED,
    VALIDATION_TEMPERATURE,
)
from ideaforge.errors import IdeaForgeError, InvalidInput, UpstreamMalformedResponse
from ideaforge.models.idea import AppIdea, as_bullets
from ideaforge.models.validation import ValidationScorecard
from ideaforge.services.ai_service import AIService, GenerationSettings
from ideaforge.utils.logger import logger
from ideaforge.utils.prompts import load_prompt

VALIDATION_SETTINGS = GenerationSettings(
    temperature=VALIDATION_TEMPERATURE,
    seed=VALIDATION_SEED,
    max_tokens=VALIDATION_MAX_TOKENS,
    json_mode=True,
)


class ValidationService:
    """Service scoring the market viability of an app idea."""

    def __init__(self, ai_service: AIService):
        """
        Initialize the validation service.

        Args:
            ai_service: Model collaborator used for both research and scoring
        """
        self.ai_service = ai_service

    def validate(self, idea: AppIdea) -> ValidationScorecard:
        """
        Validate an app idea.

        Args:
            idea: The idea form; at least a name or a purpose is required

        Returns:
            The validated scorecard

        Raises:
            InvalidInput: if the idea has neither name nor purpose
            UpstreamMalformedResponse: if the scoring reply is not a valid scorecard
        """
        if not idea.has_subject():
            raise InvalidInput("At least app name or purpose is required")

        research = self.run_web_research(idea)

        logger.info(f"Scoring idea: {idea.name or UNTITLED_APP}")
        content = self.ai_service.complete(
            load_prompt("validate_idea"),
            [{"role": "user", "content": self._build_user_message(idea, research)}],
            VALIDATION_SETTINGS,
        )
        return self.parse_scorecard(content)

    def run_web_research(self, idea: AppIdea) -> str:
        """
        Gather competitors, pain points and trends for the idea.

        Retrieval is best-effort: any failure yields a degraded-context note
        instead of failing the validation.
        """
        query = load_prompt("market_research").format(idea_summary=idea.summary())
        try:
            research = self.ai_service.research(query)
        except IdeaForgeError as e:
            logger.warning(f"Web research unavailable ({e.code}), proceeding without it: {e}")
            return DEGRADED_RESEARCH_NOTE

        if not research or not research.strip():
            logger.warning("Web research returned no content")
            return EMPTY_RESEARCH_NOTE
        return research

    @staticmethod
    def parse_scorecard(content: str) -> ValidationScorecard:
        try:
            payload = json.loads(content)
        except (TypeError, json.JSONDecodeError) as e:
            raise UpstreamMalformedResponse("Failed to parse validation response. Please try again.") from e

        try:
            return ValidationScorecard.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Validation reply does not match the scorecard shape: {e}")
            raise UpstreamMalformedResponse("Failed to parse validation response. Please try again.") from e

    @staticmethod
    def _build_user_message(idea: AppIdea, research: str) -> str:
        return f"""## LIVE WEB RESEARCH
The following research was gathered from the web specifically for this analysis. Use it to ground your scores and findings in real, current data:

{research}

---

## APP IDEA TO VALIDATE

App Name: {idea.name or UNTITLED_APP}

Purpose/Description: {idea.purpose or NOT_SPECIFIED}

Target Audience: {idea.target_audience or NOT_SPECIFIED}

Main Features:
{as_bullets(idea.main_features)}

Design Notes:
{as_bullets(idea.design_notes)}

Monetization Strategy:
{idea.monetization or NOT_SPECIFIED}

Using the web research above as your primary source of truth, provide a thorough, honest analysis with specific competitor names, real pain points, and current market trends."""
