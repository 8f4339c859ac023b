"""
Workflow Engine Package

A small deterministic workflow engine: build a graph of named steps, validate
it, run it against an evolving state with conditional branching, and resume
from checkpoints.
"""

__version__ = "1.0.0"

from .checkpoint import CheckpointManager, InMemoryCheckpointStorage, JsonFileCheckpointStorage
from .engine import GraphBuilder, WorkflowExecutor, ExecutionOptions, ExecutionStatus

__all__ = [
    "GraphBuilder",
    "WorkflowExecutor",
    "ExecutionOptions",
    "ExecutionStatus",
    "CheckpointManager",
    "InMemoryCheckpointStorage",
    "JsonFileCheckpointStorage"
]
