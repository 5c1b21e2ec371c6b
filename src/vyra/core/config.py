"""
Configuration management for vyra.

This module handles provider API keys, model selection, quota limits and
store settings.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from vyra.logging_config import get_logger
from vyra.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration constants
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_IMAGE_MODEL = "dall-e-3"
DEFAULT_OPTIMIZATION_MODEL = "gemini-pro"
DEFAULT_IMAGE_SIZE = "1024x1024"
DEFAULT_IMAGE_QUALITY = "standard"
DEFAULT_DATABASE_PATH = "vyra.db"

FREE_DAILY_LIMIT = 5
PREMIUM_DAILY_LIMIT = 100
XP_PER_GENERATION = 10
MAX_PROMPT_LENGTH = 500


@dataclass
class Config:
    """Configuration for the vyra generation backend."""

    # Provider credentials (excluded from repr to avoid leaking secrets)
    openai_api_key: str = field(default="", repr=False)
    gemini_api_key: str = field(default="", repr=False)
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL

    # Model Configuration
    image_model: str = DEFAULT_IMAGE_MODEL
    optimization_model: str = DEFAULT_OPTIMIZATION_MODEL
    optimization_target: str = "DALL-E 3"  # model named in the rewrite instruction
    optimization_word_limit: int = 40
    image_size: str = DEFAULT_IMAGE_SIZE
    image_quality: str = DEFAULT_IMAGE_QUALITY

    # Quota Configuration
    free_daily_limit: int = FREE_DAILY_LIMIT
    premium_daily_limit: int = PREMIUM_DAILY_LIMIT
    xp_per_generation: int = XP_PER_GENERATION
    max_prompt_length: int = MAX_PROMPT_LENGTH
    # Honor the client-declared isPremium flag when the user record has none
    trust_client_tier: bool = False

    # Store Configuration
    database_path: str = DEFAULT_DATABASE_PATH
    transaction_max_attempts: int = 5
    store_busy_timeout: float = 1.0  # seconds sqlite waits on a locked database

    # Timeout Configuration (seconds)
    request_timeout: int = 300  # overall budget for the pre-commit stages
    generation_timeout: int = 120
    optimization_timeout: int = 30

    # Debug: log raw API payload/response
    debug_api: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Environment variables:
            OPENAI_API_KEY: Required for image generation
            GEMINI_API_KEY: Optional; prompt optimization is skipped without it
            OPENAI_BASE_URL: Optional OpenAI-compatible endpoint
            GEMINI_BASE_URL: Optional Gemini API endpoint
            VYRA_IMAGE_MODEL: Optional image model (default dall-e-3)
            VYRA_OPTIMIZATION_MODEL: Optional Gemini model (default gemini-pro)
            VYRA_FREE_DAILY_LIMIT / VYRA_PREMIUM_DAILY_LIMIT: Optional tier limits
            VYRA_DATABASE_PATH: Optional SQLite file path (default vyra.db)
            VYRA_REQUEST_TIMEOUT: Optional overall request budget in seconds
            VYRA_TRUST_CLIENT_TIER: Optional; "1"/"true" honors the client isPremium flag
            VYRA_DEBUG_API: Optional; "1"/"true" logs raw provider payloads

        Returns:
            Config instance populated from environment
        """

        def _int_env(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None or val == "":
                return default
            try:
                return int(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be an integer, got {val!r}.") from e

        def _bool_env(name: str) -> bool:
            return os.getenv(name, "").strip().lower() in ("1", "true", "yes")

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL,
            gemini_base_url=os.getenv("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL,
            image_model=os.getenv("VYRA_IMAGE_MODEL", cls.image_model),
            optimization_model=os.getenv("VYRA_OPTIMIZATION_MODEL", cls.optimization_model),
            free_daily_limit=_int_env("VYRA_FREE_DAILY_LIMIT", FREE_DAILY_LIMIT),
            premium_daily_limit=_int_env("VYRA_PREMIUM_DAILY_LIMIT", PREMIUM_DAILY_LIMIT),
            database_path=os.getenv("VYRA_DATABASE_PATH") or DEFAULT_DATABASE_PATH,
            request_timeout=_int_env("VYRA_REQUEST_TIMEOUT", 300),
            trust_client_tier=_bool_env("VYRA_TRUST_CLIENT_TIER"),
            debug_api=_bool_env("VYRA_DEBUG_API"),
        )

    def validate(self) -> None:
        """
        Validate the configuration.

        Provider keys are not checked here: a missing image key surfaces as a
        ConfigurationError when the image provider is first requested, and a
        missing text key only disables prompt optimization.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger.debug("Validating config")

        if self.free_daily_limit <= 0:
            raise ConfigurationError(
                f"free_daily_limit must be positive, got {self.free_daily_limit}."
            )
        if self.premium_daily_limit <= self.free_daily_limit:
            raise ConfigurationError(
                f"premium_daily_limit ({self.premium_daily_limit}) must be greater than "
                f"free_daily_limit ({self.free_daily_limit})."
            )
        if self.max_prompt_length <= 0:
            raise ConfigurationError(
                f"max_prompt_length must be positive, got {self.max_prompt_length}."
            )
        if self.transaction_max_attempts < 1:
            raise ConfigurationError(
                f"transaction_max_attempts must be at least 1, got {self.transaction_max_attempts}."
            )
        for name in ("request_timeout", "generation_timeout", "optimization_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}.")
        if not self.database_path:
            raise ConfigurationError("database_path cannot be empty.")


# Global configuration instance
_global_config: Config | None = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        The global Config instance
    """
    global _global_config
    if _global_config is None:
        _global_config = Config.from_env()
    return _global_config


def set_config(config: Config) -> None:
    """
    Set the global configuration instance.

    Args:
        config: The Config instance to use globally
    """
    global _global_config
    _global_config = config
