"""
Document store protocol.

Defines the interface the ledger and quota gate rely on: per-key document
read, merge-write, simple equality queries, and a multi-document atomic
transaction with internal retry on write conflicts.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class _ServerTimestamp:
    """Sentinel replaced by the store with its own monotonic write time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Increment:
    """Field transform: add ``amount`` to the stored value (missing counts as 0)."""

    amount: int | float = 1


class Transaction(Protocol):
    """Handle passed to the function run by DocumentStore.run_transaction.

    Reads observe committed state. Writes are buffered and applied together
    when the function returns; nothing is applied if it raises.
    """

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        ...

    def set(
        self, collection: str, key: str, data: dict[str, Any], *, merge: bool = False
    ) -> None:
        ...

    def insert(self, collection: str, data: dict[str, Any]) -> str:
        """Queue a new document under a store-generated id and return the id."""
        ...


class DocumentStore(Protocol):
    """Protocol for durable document stores."""

    def initialize(self) -> None:
        """Create backing tables/collections. Safe to call more than once."""
        ...

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        ...

    def set(
        self, collection: str, key: str, data: dict[str, Any], *, merge: bool = False
    ) -> None:
        ...

    def query(
        self,
        collection: str,
        where: dict[str, Any],
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return documents whose fields equal every value in ``where``.

        Each returned dict carries its key under ``"id"``.
        """
        ...

    def run_transaction(
        self, fn: Callable[[Transaction], T], *, max_attempts: int | None = None
    ) -> T:
        """Run fn atomically, retrying on write contention.

        Raises PersistenceError when attempts are exhausted or the store fails.
        Exceptions raised by fn itself propagate unchanged after rollback.
        """
        ...
