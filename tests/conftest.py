"""Test configuration and fixtures."""

from typing import Any, Callable, Dict

import pytest

from workflow_engine.checkpoint import CheckpointManager, InMemoryCheckpointStorage
from workflow_engine.engine import GraphBuilder, WorkflowExecutor


def append_result(tag: str) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    """Handler that appends `tag` to state["results"] without mutating its input."""

    def handler(state: Dict[str, Any]) -> Dict[str, Any]:
        return {**state, "results": [*state.get("results", []), tag]}

    return handler


def identity(state: Any) -> Any:
    return state


@pytest.fixture
def builder() -> GraphBuilder:
    return GraphBuilder()


@pytest.fixture
def executor() -> WorkflowExecutor:
    return WorkflowExecutor()


@pytest.fixture
def storage() -> InMemoryCheckpointStorage:
    return InMemoryCheckpointStorage()


@pytest.fixture
def checkpoints(storage: InMemoryCheckpointStorage) -> CheckpointManager:
    return CheckpointManager(storage)
