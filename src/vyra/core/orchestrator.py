"""
Per-request generation pipeline.

Stages run in a fixed order: validate the prompt, resolve the tier and run the
quota precheck, optimize the prompt (never fatal), generate the image
(fatal on failure) and commit usage atomically. Any failure ends the request;
nothing is written unless the commit succeeds.

The pre-commit stages share one deadline (Config.request_timeout). The commit
is not cut short by it: once started it either lands or rolls back.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from vyra.core.clients import ProviderClients, get_clients
from vyra.core.config import Config
from vyra.core.image_gen import GenerationResult, ImageGenerator
from vyra.core.ledger import CommitResult, GenerationData, TransactionalLedger
from vyra.core.prompt import PromptOptimizer, validate_prompt
from vyra.core.quota import QuotaGate, resolve_tier
from vyra.logging_config import get_logger
from vyra.utils.exceptions import QuotaExceededError, RequestTimeoutError

logger = get_logger(__name__)


class Stage(str, Enum):
    VALIDATING = "validating"
    QUOTA_CHECKING = "quota_checking"
    OPTIMIZING = "optimizing"
    GENERATING = "generating"
    COMMITTING = "committing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class GenerationRequest:
    """One authenticated generation request."""

    user_id: str
    prompt: str
    style: str | None = None
    is_premium: bool = False  # client-declared; see quota.resolve_tier


@dataclass
class GenerationResponse:
    """Successful pipeline outcome."""

    image_url: str
    optimized_prompt: str
    generation_id: str = ""
    daily_count: int = 0
    limit: int = 0


@dataclass
class PipelineRun:
    """Mutable per-request state; one per call to Orchestrator.run."""

    request: GenerationRequest
    stage: Stage = Stage.VALIDATING


def utc_today() -> str:
    """Current UTC calendar day as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()


class Orchestrator:
    """Sequences quota gate, optimizer, image generator and ledger for one request."""

    def __init__(
        self,
        clients: ProviderClients | None = None,
        config: Config | None = None,
        today_fn: Callable[[], str] = utc_today,
    ) -> None:
        self.clients = clients or get_clients()
        self.config = config or self.clients.config
        self.today_fn = today_fn
        self.quota_gate = QuotaGate(self.clients, self.config)
        self.optimizer = PromptOptimizer(self.clients, self.config)
        self.image_generator = ImageGenerator(self.clients, self.config)
        self.ledger = TransactionalLedger(self.clients, self.config)

    def _enter(self, run: PipelineRun, stage: Stage) -> None:
        run.stage = stage
        logger.debug("user=%s stage=%s", run.request.user_id, stage.value)

    async def _prepare(self, run: PipelineRun, today: str) -> tuple[str, GenerationResult, int]:
        """Quota check, optimization and generation; returns (prompt, image, limit)."""
        request = run.request
        self._enter(run, Stage.QUOTA_CHECKING)
        record = await self.quota_gate.load_record(request.user_id)
        tier = resolve_tier(record, request.is_premium, self.config.trust_client_tier)
        status = await self.quota_gate.precheck(request.user_id, today, tier, record=record)
        if not status.allowed:
            raise QuotaExceededError(status.limit)

        self._enter(run, Stage.OPTIMIZING)
        optimized = await self.optimizer.optimize(request.prompt, request.style)

        self._enter(run, Stage.GENERATING)
        image = await self.image_generator.generate(optimized)
        return optimized, image, status.limit

    async def run(self, request: GenerationRequest) -> GenerationResponse:
        """
        Run the pipeline for one request.

        Returns:
            GenerationResponse with the image URL and the prompt actually used

        Raises:
            ValidationError: Empty or oversized prompt (before any store access)
            QuotaExceededError: Daily limit reached (precheck or commit)
            RequestTimeoutError: Pre-commit stages exceeded Config.request_timeout
            ConfigurationError, APIError, NetworkError, UpstreamEmptyResultError:
                Image generation failed
            PersistenceError: The commit could not be applied
        """
        run = PipelineRun(request)
        try:
            validate_prompt(request.prompt, self.config.max_prompt_length)
            today = self.today_fn()
            try:
                optimized, image, limit = await asyncio.wait_for(
                    self._prepare(run, today), timeout=self.config.request_timeout
                )
            except asyncio.TimeoutError as e:
                raise RequestTimeoutError(
                    f"Request exceeded {self.config.request_timeout}s before commit "
                    f"(stage={run.stage.value})."
                ) from e

            self._enter(run, Stage.COMMITTING)
            commit: CommitResult = await self.ledger.commit(
                request.user_id,
                today,
                GenerationData(
                    original_prompt=request.prompt,
                    optimized_prompt=optimized,
                    image_url=image.image_url,
                    style=request.style,
                ),
                limit=limit,
            )
        except Exception as e:
            logger.debug(
                "user=%s failed at stage=%s: %s", request.user_id, run.stage.value, type(e).__name__
            )
            run.stage = Stage.FAILED
            raise

        self._enter(run, Stage.SUCCEEDED)
        return GenerationResponse(
            image_url=image.image_url,
            optimized_prompt=optimized,
            generation_id=commit.generation_id,
            daily_count=commit.daily_count,
            limit=limit,
        )
