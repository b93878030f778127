"""
Factory for creating service instances and flows.
"""

from dataclasses import dataclass

from ideaforge.errors import ConfigurationError
from ideaforge.models.usage import OperationKind
from ideaforge.orchestrator import ConversationOrchestrator, IdeaValidationFlow
from ideaforge.services.ai_service import AIService
from ideaforge.services.enhancement_service import EnhancementService
from ideaforge.services.gemini_service import GeminiService
from ideaforge.services.generation_service import GenerationService
from ideaforge.services.openai_service import OpenAIService
from ideaforge.services.validation_service import ValidationService
from ideaforge.usage_ledger import MongoUsageLedger, UsageLedger
from ideaforge.utils.config import config
from ideaforge.utils.mongodb_client import MongoDBClient


@dataclass
class Services:
    """The stateless endpoint services sharing one model collaborator."""

    ai_service: AIService
    enhancement: EnhancementService
    validation: ValidationService
    generation: GenerationService


def create_ai_service(model_type=None) -> AIService:
    """
    Factory to create the model collaborator for the configured provider.

    Args:
        model_type: "openai" or "gemini"; defaults to MODEL_PROVIDER

    Returns:
        AIService instance

    Raises:
        ConfigurationError: if the provider is unknown or its API key is missing
    """
    model_type = (model_type or config.model_provider).lower()

    if model_type == "openai":
        return OpenAIService(
            config.openai_api_key,
            config.openai_model,
            config.openai_search_model,
            timeout=config.upstream_timeout_seconds,
        )
    elif model_type == "gemini":
        return GeminiService(
            config.google_ai_api_key,
            config.google_ai_model,
            timeout=config.upstream_timeout_seconds,
        )
    else:
        raise ConfigurationError(f"Unsupported model provider: {model_type}. Use \"openai\" or \"gemini\".")


def create_services(model_type=None) -> Services:
    ai_service = create_ai_service(model_type)
    return Services(
        ai_service=ai_service,
        enhancement=EnhancementService(ai_service),
        validation=ValidationService(ai_service),
        generation=GenerationService(ai_service),
    )


def create_usage_ledger(mongodb_client: MongoDBClient = None) -> UsageLedger:
    return MongoUsageLedger(mongodb_client or MongoDBClient())


def create_enhancement_session(
    subject: str,
    original_prompt: str,
    services: Services,
    usage_ledger: UsageLedger,
) -> ConversationOrchestrator:
    return ConversationOrchestrator(
        services.enhancement,
        usage_ledger,
        subject,
        original_prompt,
        kind=OperationKind.ENHANCEMENT,
        daily_limit=config.daily_enhancement_limit,
        max_round_trips=config.max_round_trips,
        max_retries=config.max_auto_retries,
        retry_delay=config.retry_backoff_seconds,
    )


def create_validation_flow(
    subject: str,
    services: Services,
    usage_ledger: UsageLedger,
    validation_store=None,
) -> IdeaValidationFlow:
    return IdeaValidationFlow(
        services.validation,
        usage_ledger,
        subject,
        validation_store=validation_store,
        daily_limit=config.daily_validation_limit,
        max_retries=config.max_auto_retries,
        retry_delay=config.retry_backoff_seconds,
    )


def daily_limits() -> dict:
    return {
        OperationKind.ENHANCEMENT: config.daily_enhancement_limit,
        OperationKind.VALIDATION: config.daily_validation_limit,
    }
