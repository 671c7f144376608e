"""Persistence for identity facts, memory chunks, the token index and reviews.

Every backend implements the Storage interface and must be externally
indistinguishable from the others.
"""

from memlane.storage.errors import (
    ConflictError,
    ConnectionError,
    SerializationError,
    StoreError,
)
from memlane.storage.store import Storage

__all__ = [
    "Storage",
    "StoreError",
    "ConnectionError",
    "ConflictError",
    "SerializationError",
]
