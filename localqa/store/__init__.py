"""Chunk store adapters.

Primary components:
- ``base``: abstract ``ChunkSource``/``ChunkStore`` interfaces and store exceptions.
- ``memory``: in-process implementation with pickle snapshots.

Guidance:
- Search code should depend on ``ChunkSource`` only so it stays decoupled
  from any specific backend.
"""

from .base import (
    ChunkSource,
    ChunkStore,
    StoreError,
    StoreNotFoundError,
    StoreSnapshotError,
    StoreValidationError,
)
from .memory import InMemoryChunkStore

__all__ = [
    "ChunkSource",
    "ChunkStore",
    "StoreError",
    "StoreNotFoundError",
    "StoreSnapshotError",
    "StoreValidationError",
    "InMemoryChunkStore",
]
