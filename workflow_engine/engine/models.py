from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Union
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .errors import ExecutionError, UnknownNodeError


# A handler takes the current state and returns the next one. Coroutine
# functions are accepted as well and awaited by the executor.
NodeHandler = Callable[[Any], Any]
DecideFunction = Callable[[Any], str]


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class NodeStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Node(BaseModel):
    """A named unit of work with a single state-transforming handler"""
    model_config = ConfigDict(frozen=True)

    name: str
    handler: NodeHandler


class UnconditionalEdge(BaseModel):
    """Always taken once its source node has completed"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["unconditional"] = "unconditional"
    source: str
    target: str

    @property
    def targets(self) -> List[str]:
        return [self.target]


class ConditionalEdge(BaseModel):
    """
    Chooses its target at run time.

    `decide` maps the state produced by the source node to one of the keys in
    `routes`. A key that is not in `routes` means the edge does not apply.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["conditional"] = "conditional"
    source: str
    decide: DecideFunction
    routes: Dict[str, str]

    @property
    def targets(self) -> List[str]:
        return list(self.routes.values())


Edge = Union[UnconditionalEdge, ConditionalEdge]


class WorkflowGraph(BaseModel):
    """Immutable snapshot produced by GraphBuilder.build()"""
    model_config = ConfigDict(frozen=True)

    nodes: Dict[str, Node]
    edges: Dict[str, Tuple[Edge, ...]]
    entry_point: str

    def successors(self, name: str) -> List[str]:
        """Every node that can structurally follow `name`, in edge order."""
        seen: List[str] = []
        for edge in self.edges.get(name, ()):
            for target in edge.targets:
                if target not in seen:
                    seen.append(target)
        return seen

    def with_entry_point(self, name: str) -> "WorkflowGraph":
        """
        Return a copy of this graph that starts at `name`.

        Used to resume a partial run: execute the returned graph with the
        partial result's final state.
        """
        if name not in self.nodes:
            raise UnknownNodeError(name, role="Entry point node")
        return self.model_copy(update={"entry_point": name})

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.edges.values())


class ExecutionOptions(BaseModel):
    max_steps: Optional[int] = Field(default=None, ge=1)


class ExecutionLog(BaseModel):
    """Log entry for workflow execution"""
    timestamp: datetime
    node_name: str
    status: NodeStatus
    message: str


class ExecutionMetadata(BaseModel):
    started_at: datetime
    finished_at: datetime
    duration_ms: float
    step_count: int


class ExecutionResult(BaseModel):
    """Outcome of a single execute() call"""
    status: ExecutionStatus
    final_state: Any = None
    executed_nodes: List[str] = []
    error: Optional[str] = None
    failed_node: Optional[str] = None
    next_node: Optional[str] = None
    logs: List[ExecutionLog] = []
    metadata: Optional[ExecutionMetadata] = None

    @property
    def ok(self) -> bool:
        return self.status != ExecutionStatus.FAILED

    def raise_for_status(self) -> "ExecutionResult":
        if self.status == ExecutionStatus.FAILED:
            raise ExecutionError(self.error or "Workflow execution failed", node_name=self.failed_node)
        return self
