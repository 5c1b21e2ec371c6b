"""
vyra - quota-enforced AI image generation backend

Turns a user's text prompt into an image: checks the user's daily quota for
their tier, refines the prompt with a text model (best effort), generates the
image with an image model, and records usage and history atomically.

Library usage:
- Build an Orchestrator over ProviderClients(config) and await
  orchestrator.run(GenerationRequest(...)), or call the callable entry point
  vyra.api.generate_image_handler(auth, data).
- Configuration comes from the environment (.env supported) via Config.from_env();
  get_config() / set_config() hold the process-wide default.
- Logging: control verbosity with set_verbosity(0|1|2) or configure_logging(verbose_level, quiet);
  VYRA_VERBOSITY env (0/1/2) is read by the CLI.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vyra")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source in development)
    __version__ = "0.0.0.dev"

from vyra.api import AuthContext, CallableError, call_generate_image, generate_image_handler
from vyra.core.clients import ProviderClients, get_clients, set_clients
from vyra.core.config import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_OPTIMIZATION_MODEL,
    FREE_DAILY_LIMIT,
    PREMIUM_DAILY_LIMIT,
    Config,
    get_config,
    set_config,
)
from vyra.core.image_gen import GenerationResult, ImageGenerator
from vyra.core.ledger import CommitResult, GenerationData, GenerationRecord, TransactionalLedger
from vyra.core.orchestrator import GenerationRequest, GenerationResponse, Orchestrator, Stage
from vyra.core.prompt import PromptOptimizer, validate_prompt
from vyra.core.quota import QuotaGate, QuotaStatus, Tier, UserQuotaRecord
from vyra.logging_config import configure_logging, set_verbosity
from vyra.utils.exceptions import (
    APIError,
    AuthError,
    ConfigurationError,
    NetworkError,
    PersistenceError,
    QuotaExceededError,
    RequestTimeoutError,
    UpstreamEmptyResultError,
    ValidationError,
    VyraError,
)

__all__ = [
    "APIError",
    "AuthContext",
    "AuthError",
    "CallableError",
    "CommitResult",
    "Config",
    "ConfigurationError",
    "DEFAULT_IMAGE_MODEL",
    "DEFAULT_OPTIMIZATION_MODEL",
    "FREE_DAILY_LIMIT",
    "GenerationData",
    "GenerationRecord",
    "GenerationRequest",
    "GenerationResponse",
    "GenerationResult",
    "ImageGenerator",
    "NetworkError",
    "Orchestrator",
    "PREMIUM_DAILY_LIMIT",
    "PersistenceError",
    "PromptOptimizer",
    "ProviderClients",
    "QuotaExceededError",
    "QuotaGate",
    "QuotaStatus",
    "RequestTimeoutError",
    "Stage",
    "Tier",
    "TransactionalLedger",
    "UpstreamEmptyResultError",
    "UserQuotaRecord",
    "ValidationError",
    "VyraError",
    "call_generate_image",
    "configure_logging",
    "generate_image_handler",
    "get_clients",
    "get_config",
    "set_clients",
    "set_config",
    "set_verbosity",
    "validate_prompt",
]
