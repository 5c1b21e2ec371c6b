"""
Durable document store for vyra.

Built-in backend is SQLite; any object satisfying DocumentStore can be
injected instead.
"""

from vyra.storage.base import (
    SERVER_TIMESTAMP,
    DocumentStore,
    Increment,
    Transaction,
)
from vyra.storage.sqlite import SQLiteDocumentStore

USERS_COLLECTION = "users"
GENERATIONS_COLLECTION = "generations"

__all__ = [
    "DocumentStore",
    "GENERATIONS_COLLECTION",
    "Increment",
    "SERVER_TIMESTAMP",
    "SQLiteDocumentStore",
    "Transaction",
    "USERS_COLLECTION",
]
