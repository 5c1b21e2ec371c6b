"""
Daily quota rules and the advisory precheck.

A user's stored daily count is only meaningful for the calendar day in
``lastGenerationDate``; on any other day it reads as 0. The count is never
reset explicitly, only reinterpreted on read (here and inside the ledger
commit).

QuotaGate.precheck reads outside any transaction, so two in-flight requests
for the same user can both pass it. It exists to avoid paying for provider
calls that are certain to be rejected; the ledger commit re-checks the limit
atomically and is the only authoritative enforcement.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

from vyra.core.clients import ProviderClients
from vyra.core.config import Config
from vyra.logging_config import get_logger
from vyra.storage import USERS_COLLECTION

logger = get_logger(__name__)


class Tier(str, Enum):
    """Subscription tier; decides the daily generation limit."""

    FREE = "free"
    PREMIUM = "premium"


@dataclass
class UserQuotaRecord:
    """Typed view of a document in the users collection."""

    daily_generation_count: int = 0
    last_generation_date: str | None = None
    total_generations: int = 0
    xp: int = 0
    is_premium: bool | None = None  # server-managed subscription flag, if present

    @classmethod
    def from_document(cls, data: dict[str, Any] | None) -> "UserQuotaRecord":
        data = data or {}
        premium = data.get("isPremium")
        return cls(
            daily_generation_count=data.get("dailyGenerationCount") or 0,
            last_generation_date=data.get("lastGenerationDate"),
            total_generations=data.get("totalGenerations") or 0,
            xp=data.get("xp") or 0,
            is_premium=premium if isinstance(premium, bool) else None,
        )

    def effective_daily_count(self, today: str) -> int:
        """Return the count for ``today`` (0 when the stored count is from another day)."""
        if self.last_generation_date != today:
            return 0
        return self.daily_generation_count


@dataclass
class QuotaStatus:
    """Outcome of a precheck."""

    allowed: bool
    limit: int
    count: int
    tier: Tier


def daily_limit(tier: Tier, config: Config) -> int:
    """Return the daily generation limit for ``tier``."""
    if tier is Tier.PREMIUM:
        return config.premium_daily_limit
    return config.free_daily_limit


def resolve_tier(record: UserQuotaRecord, declared_premium: bool, trust_client_tier: bool) -> Tier:
    """
    Decide the tier for a request.

    The server-managed ``isPremium`` flag on the user record wins. Without it,
    the client-declared flag is honored only when ``trust_client_tier`` is set;
    otherwise the user gets the base tier.
    """
    if record.is_premium is not None:
        return Tier.PREMIUM if record.is_premium else Tier.FREE
    if trust_client_tier and declared_premium:
        return Tier.PREMIUM
    return Tier.FREE


class QuotaGate:
    """Non-authoritative admission check against just-read usage state."""

    def __init__(self, clients: ProviderClients, config: Config | None = None) -> None:
        self.clients = clients
        self.config = config or clients.config

    def read_record(self, user_id: str) -> UserQuotaRecord:
        """Blocking read of the user's quota record."""
        data = self.clients.store().get(USERS_COLLECTION, user_id)
        return UserQuotaRecord.from_document(data)

    async def load_record(self, user_id: str) -> UserQuotaRecord:
        """Read the user's current quota record (empty record if none exists)."""
        return await asyncio.to_thread(self.read_record, user_id)

    async def precheck(
        self,
        user_id: str,
        today: str,
        tier: Tier,
        record: UserQuotaRecord | None = None,
    ) -> QuotaStatus:
        """
        Check whether ``user_id`` may start another generation today.

        Args:
            user_id: Authenticated user id
            today: Current calendar day as YYYY-MM-DD
            tier: Resolved subscription tier
            record: Record already read for this request (read from the store if None)

        Returns:
            QuotaStatus with ``allowed = count < limit``
        """
        if record is None:
            record = await self.load_record(user_id)
        count = record.effective_daily_count(today)
        limit = daily_limit(tier, self.config)
        status = QuotaStatus(allowed=count < limit, limit=limit, count=count, tier=tier)
        logger.debug(
            "Precheck user=%s tier=%s count=%d limit=%d allowed=%s",
            user_id,
            tier.value,
            count,
            limit,
            status.allowed,
        )
        return status
