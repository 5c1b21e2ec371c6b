"""
Authoritative usage accounting.

TransactionalLedger.commit is the single place user counters change. In one
store transaction it re-reads the user's quota record, re-applies the day
rollover, optionally enforces the tier limit, merge-writes the new counters
and inserts the generation history record. Either both writes land or
neither does; concurrent commits for the same user are serialized by the
store.
"""

import asyncio
from dataclasses import dataclass
from typing import Any

from vyra.core.clients import ProviderClients
from vyra.core.config import Config
from vyra.core.quota import UserQuotaRecord
from vyra.logging_config import get_logger
from vyra.storage import (
    GENERATIONS_COLLECTION,
    SERVER_TIMESTAMP,
    USERS_COLLECTION,
    Increment,
    Transaction,
)
from vyra.utils.exceptions import QuotaExceededError

logger = get_logger(__name__)


@dataclass
class GenerationData:
    """What a successful generation contributes to the history record."""

    original_prompt: str
    optimized_prompt: str
    image_url: str
    style: str | None = None


@dataclass
class CommitResult:
    """Counters as written by a commit, plus the new history record id."""

    generation_id: str
    daily_count: int
    total_generations: int
    xp: int


@dataclass
class GenerationRecord:
    """Typed view of a document in the generations collection."""

    id: str
    uid: str
    original_prompt: str
    optimized_prompt: str
    style: str | None
    image_url: str
    timestamp: str
    is_public: bool = False

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "GenerationRecord":
        return cls(
            id=data["id"],
            uid=data["uid"],
            original_prompt=data.get("originalPrompt", ""),
            optimized_prompt=data.get("optimizedPrompt", ""),
            style=data.get("style"),
            image_url=data.get("imageUrl", ""),
            timestamp=data.get("timestamp", ""),
            is_public=bool(data.get("isPublic", False)),
        )


class TransactionalLedger:
    """Atomic read-modify-write of the quota record plus history append."""

    def __init__(self, clients: ProviderClients, config: Config | None = None) -> None:
        self.clients = clients
        self.config = config or clients.config

    def _apply(
        self,
        tx: Transaction,
        user_id: str,
        today: str,
        generation: GenerationData,
        limit: int | None,
    ) -> CommitResult:
        # Fresh read inside the transaction; the precheck value is never reused.
        fresh = UserQuotaRecord.from_document(tx.get(USERS_COLLECTION, user_id))
        fresh_count = fresh.effective_daily_count(today)
        if limit is not None and fresh_count >= limit:
            raise QuotaExceededError(limit)

        xp_award = self.config.xp_per_generation
        tx.set(
            USERS_COLLECTION,
            user_id,
            {
                "dailyGenerationCount": fresh_count + 1,
                "lastGenerationDate": today,
                "totalGenerations": Increment(1),
                "xp": Increment(xp_award),
            },
            merge=True,
        )
        generation_id = tx.insert(
            GENERATIONS_COLLECTION,
            {
                "uid": user_id,
                "originalPrompt": generation.original_prompt,
                "optimizedPrompt": generation.optimized_prompt,
                "style": generation.style,
                "imageUrl": generation.image_url,
                "timestamp": SERVER_TIMESTAMP,
                "isPublic": False,
            },
        )
        return CommitResult(
            generation_id=generation_id,
            daily_count=fresh_count + 1,
            total_generations=fresh.total_generations + 1,
            xp=fresh.xp + xp_award,
        )

    def commit_sync(
        self,
        user_id: str,
        today: str,
        generation: GenerationData,
        limit: int | None = None,
    ) -> CommitResult:
        """Blocking form of commit(); runs the store transaction in the calling thread."""
        store = self.clients.store()
        result = store.run_transaction(
            lambda tx: self._apply(tx, user_id, today, generation, limit),
            max_attempts=self.config.transaction_max_attempts,
        )
        logger.info(
            "Committed generation=%s user=%s daily_count=%d",
            result.generation_id,
            user_id,
            result.daily_count,
        )
        return result

    async def commit(
        self,
        user_id: str,
        today: str,
        generation: GenerationData,
        limit: int | None = None,
    ) -> CommitResult:
        """
        Record one successful generation for ``user_id`` on ``today``.

        Args:
            user_id: Authenticated user id
            today: Current calendar day as YYYY-MM-DD
            generation: Prompts, style and image URL to record
            limit: Daily limit to enforce against the fresh count (None skips the check)

        Returns:
            CommitResult with the written counters and the new record id

        Raises:
            QuotaExceededError: If the fresh count already reached ``limit``
            PersistenceError: If the transaction exhausts its retries or the store fails
        """
        return await asyncio.to_thread(self.commit_sync, user_id, today, generation, limit)

    def history(self, user_id: str, limit: int = 20) -> list[GenerationRecord]:
        """Return the user's generation records, newest first."""
        documents = self.clients.store().query(
            GENERATIONS_COLLECTION,
            {"uid": user_id},
            order_by="timestamp",
            descending=True,
            limit=limit,
        )
        return [GenerationRecord.from_document(doc) for doc in documents]
