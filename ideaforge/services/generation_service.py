"""
Creative generation: app names, builder prompts and whole app ideas.
"""

import json
from typing import Optional

from pydantic import ValidationError

from ideaforge.constants import (
    APP_NAME_MAX_TOKENS,
    APP_NAME_TEMPERATURE,
    BUILD_PROMPT_MAX_TOKENS,
    BUILD_PROMPT_TEMPERATURE,
    IDEA_MAX_TOKENS,
    IDEA_TEMPERATURE,
    NOT_SPECIFIED,
    UNTITLED_APP,
)
from ideaforge.errors import InvalidInput, UpstreamMalformedResponse
from ideaforge.models.idea import AppIdea, IDEA_FORM_FIELDS, as_bullets
from ideaforge.services.ai_service import AIService, GenerationSettings
from ideaforge.utils.logger import logger
from ideaforge.utils.prompts import load_prompt

APP_NAME_SETTINGS = GenerationSettings(temperature=APP_NAME_TEMPERATURE, max_tokens=APP_NAME_MAX_TOKENS)
BUILD_PROMPT_SETTINGS = GenerationSettings(temperature=BUILD_PROMPT_TEMPERATURE, max_tokens=BUILD_PROMPT_MAX_TOKENS)
IDEA_SETTINGS = GenerationSettings(temperature=IDEA_TEMPERATURE, max_tokens=IDEA_MAX_TOKENS, json_mode=True)


class GenerationService:
    """Service for the creative, single-shot generation calls."""

    def __init__(self, ai_service: AIService):
        self.ai_service = ai_service

    def generate_app_name(self, purpose: str) -> str:
        """
        Generate a short, catchy app name.

        Args:
            purpose: What the app does

        Returns:
            The name, stripped of whitespace and quotes
        """
        if not purpose or not purpose.strip():
            raise InvalidInput("Purpose is required")

        logger.info("Generating app name")
        content = self.ai_service.complete(
            load_prompt("app_name"),
            [{"role": "user", "content": f"Generate a catchy, trendy app name for an app that: {purpose.strip()}"}],
            APP_NAME_SETTINGS,
        )
        name = content.strip().strip("\"'").strip()
        if not name:
            raise UpstreamMalformedResponse("No name generated")
        logger.info(f"App name generated successfully: {name}")
        return name

    def generate_build_prompt(self, idea: AppIdea) -> str:
        """Turn the idea form into a comprehensive prompt for a no-code site builder."""
        if not idea.has_subject():
            raise InvalidInput("At least app name or purpose is required")

        user_message = f"""Please create a comprehensive Bolt.new prompt for the following app idea:

App Name: {idea.name or UNTITLED_APP}

Purpose/Description: {idea.purpose or NOT_SPECIFIED}

Target Audience: {idea.target_audience or "General users"}

Main Features:
{as_bullets(idea.main_features)}

Design Notes:
{as_bullets(idea.design_notes)}

Monetization Strategy:
{idea.monetization or NOT_SPECIFIED}

Remember:
- DO NOT include any image generation requests
- Use Unsplash or placeholder images for any visual needs
- Focus on creating a functional, production-ready web application
- Be specific and comprehensive about all features and interactions"""

        logger.info(f"Generating build prompt for: {idea.name or UNTITLED_APP}")
        prompt = self.ai_service.complete(
            load_prompt("build_prompt"),
            [{"role": "user", "content": user_message}],
            BUILD_PROMPT_SETTINGS,
        )
        return prompt.strip()

    def generate_idea(self, user_responses: Optional[str] = None) -> AppIdea:
        """
        Generate a simple app idea.

        Args:
            user_responses: The user's answers from the guided chat; a random
                idea is generated when omitted

        Returns:
            AppIdea with all six form fields filled in
        """
        if user_responses and user_responses.strip():
            user_message = (
                "Based on these user responses, generate a personalized app idea that matches their "
                f"interests and needs:\n\n{user_responses.strip()}\n\n"
                "Provide a simple, achievable app idea in the specified JSON format."
            )
        else:
            user_message = (
                "Generate a random simple app idea that would be fun or useful to build. Make it creative "
                "but achievable for beginners. Provide it in the specified JSON format."
            )

        logger.info("Generating app idea")
        content = self.ai_service.complete(
            load_prompt("idea_generator"),
            [{"role": "user", "content": user_message}],
            IDEA_SETTINGS,
        )

        try:
            payload = json.loads(content)
            idea = AppIdea.model_validate({field: payload.get(field) or "" for field in IDEA_FORM_FIELDS})
        except (json.JSONDecodeError, AttributeError, ValidationError) as e:
            raise UpstreamMalformedResponse(f"Failed to parse generated idea: {e}") from e

        missing = [field for field in IDEA_FORM_FIELDS if not getattr(idea, field).strip()]
        if missing:
            raise UpstreamMalformedResponse(f"Missing required field: {missing[0]}")
        return idea
