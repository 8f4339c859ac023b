"""
Checkpoint persistence

A manager façade over pluggable storage, with an in-memory default and a
JSON file backend.
"""

from .manager import CheckpointManager
from .storage import (
    Checkpoint,
    CheckpointStorage,
    InMemoryCheckpointStorage,
    JsonFileCheckpointStorage
)

__all__ = [
    "CheckpointManager",
    "Checkpoint",
    "CheckpointStorage",
    "InMemoryCheckpointStorage",
    "JsonFileCheckpointStorage"
]
