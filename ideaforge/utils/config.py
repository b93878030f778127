import os
from pathlib import Path
from dotenv import load_dotenv

from ideaforge.constants import (
    DAILY_ENHANCEMENT_LIMIT,
    DAILY_VALIDATION_LIMIT,
    MAX_AUTO_RETRIES,
    MAX_ROUND_TRIPS,
    RETRY_BACKOFF_SECONDS,
    UPSTREAM_TIMEOUT_SECONDS,
)

class Config:
    def __init__(self):
        # Load appropriate .env file based on environment
        self.env = os.getenv("IDEAFORGE_ENV", "dev")
        self._load_env_file()

        # Model provider selection ("openai" or "gemini")
        self.model_provider = os.getenv("MODEL_PROVIDER", "openai").lower()

        # OpenAI settings
        self.openai_api_key = os.getenv("OPENAI_API_KEY")
        self.openai_model = os.getenv("OPENAI_MODEL", "gpt-4o")
        self.openai_search_model = os.getenv("OPENAI_SEARCH_MODEL", "gpt-4o-search-preview")

        # Google AI settings
        self.google_ai_api_key = os.getenv("GOOGLE_AI_API_KEY")
        self.google_ai_model = os.getenv("GOOGLE_AI_MODEL", "gemini-2.0-flash")

        # MongoDB settings
        self.mongo_uri = os.getenv("MONGO_URI")
        self.mongo_db_name = os.getenv("MONGO_DB_NAME", "ideaforge")

        # Usage limits and conversation bounds
        self.daily_enhancement_limit = int(os.getenv("DAILY_ENHANCEMENT_LIMIT", DAILY_ENHANCEMENT_LIMIT))
        self.daily_validation_limit = int(os.getenv("DAILY_VALIDATION_LIMIT", DAILY_VALIDATION_LIMIT))
        self.max_round_trips = int(os.getenv("MAX_ROUND_TRIPS", MAX_ROUND_TRIPS))

        # Retry and timeout settings
        self.max_auto_retries = int(os.getenv("MAX_AUTO_RETRIES", MAX_AUTO_RETRIES))
        self.retry_backoff_seconds = float(os.getenv("RETRY_BACKOFF_SECONDS", RETRY_BACKOFF_SECONDS))
        self.upstream_timeout_seconds = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", UPSTREAM_TIMEOUT_SECONDS))

        # Logging settings
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_format = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def _load_env_file(self):
        """Load the appropriate .env file based on the environment."""
        env_file = ".env"

        # Check for environment-specific .env file
        if self.env != "dev":
            env_specific_file = f".env.{self.env}"
            if Path(env_specific_file).exists():
                env_file = env_specific_file
                print(f"Loading environment from {env_file}")
            else:
                print(f"Warning: {env_specific_file} not found, falling back to .env")

        # Load the environment file
        load_dotenv(env_file)

# Create a global config instance
config = Config()
