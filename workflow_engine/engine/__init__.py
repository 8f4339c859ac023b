"""
Core workflow engine components

Graph construction and validation, sequential execution, and the data models
and errors they share.
"""

from .errors import (
    WorkflowError,
    ConfigurationError,
    DuplicateNodeError,
    UnknownNodeError,
    MissingEntryPointError,
    CyclicGraphError,
    ExecutionError
)
from .executor import WorkflowExecutor
from .graph import GraphBuilder
from .models import (
    Node,
    UnconditionalEdge,
    ConditionalEdge,
    WorkflowGraph,
    ExecutionOptions,
    ExecutionResult,
    ExecutionStatus,
    ExecutionLog,
    NodeStatus
)
from .registry import WorkflowRegistry

__all__ = [
    "GraphBuilder",
    "WorkflowExecutor",
    "WorkflowRegistry",
    "Node",
    "UnconditionalEdge",
    "ConditionalEdge",
    "WorkflowGraph",
    "ExecutionOptions",
    "ExecutionResult",
    "ExecutionStatus",
    "ExecutionLog",
    "NodeStatus",
    "WorkflowError",
    "ConfigurationError",
    "DuplicateNodeError",
    "UnknownNodeError",
    "MissingEntryPointError",
    "CyclicGraphError",
    "ExecutionError"
]
