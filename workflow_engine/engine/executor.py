from typing import Any, List, Optional
from datetime import datetime, timezone
import inspect
import logging
import time

from .errors import ExecutionError
from .models import (
    ConditionalEdge, ExecutionLog, ExecutionMetadata, ExecutionOptions,
    ExecutionResult, ExecutionStatus, Node, NodeStatus, UnconditionalEdge,
    WorkflowGraph
)

logger = logging.getLogger(__name__)


class WorkflowExecutor:
    """
    Drives a built graph one node at a time.

    The executor keeps no state between calls, so a single instance (and a
    single graph) can serve any number of concurrent execute() calls.
    """

    def __init__(self, default_max_steps: Optional[int] = None):
        # Same bounds as a per-call budget; pydantic rejects anything below 1.
        self.default_options = ExecutionOptions(max_steps=default_max_steps)

    @property
    def default_max_steps(self) -> Optional[int]:
        return self.default_options.max_steps

    async def execute(
        self,
        graph: WorkflowGraph,
        initial_state: Any,
        options: Optional[ExecutionOptions] = None,
    ) -> ExecutionResult:
        """
        Run `graph` from its entry point against `initial_state`.

        Handler failures never propagate: they come back as a FAILED result
        carrying the state the failing handler was given. With `max_steps`
        set, the run stops as PARTIAL once that many handlers have completed
        and another node is still due; `next_node` names it.
        """
        max_steps = (options if options is not None else self.default_options).max_steps
        started_at = datetime.now(timezone.utc)
        started = time.perf_counter()

        run = _Run(started_at=started_at, started=started)
        state = initial_state
        current = graph.entry_point
        logger.info(f"Starting workflow at '{current}' (max_steps={max_steps})")

        while True:
            node = graph.nodes[current]
            run.executed.append(current)
            run.log(current, NodeStatus.RUNNING, f"Executing node {current}")

            try:
                new_state = await self._execute_node(node, state)
            except ExecutionError as e:
                run.log(current, NodeStatus.FAILED, f"Node {current} failed: {e}")
                logger.error(f"Workflow failed at node '{current}': {e}")
                return run.finish(ExecutionStatus.FAILED, state, error=str(e), failed_node=current)

            run.log(current, NodeStatus.COMPLETED, f"Node {current} completed")

            try:
                next_node = self._resolve_next_node(graph, current, new_state)
            except ExecutionError as e:
                logger.error(f"Routing from node '{current}' failed: {e}")
                return run.finish(ExecutionStatus.FAILED, new_state, error=str(e), failed_node=current)

            if next_node is None:
                logger.info(f"Workflow completed after {len(run.executed)} steps")
                return run.finish(ExecutionStatus.COMPLETED, new_state)

            if max_steps is not None and len(run.executed) >= max_steps:
                logger.info(f"Step budget of {max_steps} reached, pausing before '{next_node}'")
                return run.finish(ExecutionStatus.PARTIAL, new_state, next_node=next_node)

            state = new_state
            current = next_node

    async def _execute_node(self, node: Node, state: Any) -> Any:
        """Call the handler, awaiting it if it returned an awaitable."""
        try:
            result = node.handler(state)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise ExecutionError(str(e) or e.__class__.__name__, node_name=node.name) from e
        return result

    def _resolve_next_node(self, graph: WorkflowGraph, current: str, state: Any) -> Optional[str]:
        """
        First edge, in insertion order, that resolves wins.

        Unconditional edges always resolve. A conditional edge resolves when
        its decision is one of its route keys; otherwise the next edge is tried.
        """
        for edge in graph.edges.get(current, ()):
            if isinstance(edge, UnconditionalEdge):
                logger.debug(f"'{current}' -> '{edge.target}'")
                return edge.target

            if isinstance(edge, ConditionalEdge):
                try:
                    key = edge.decide(state)
                    target = edge.routes.get(key)
                except Exception as e:
                    raise ExecutionError(
                        f"Routing decision for '{current}' failed: {e}", node_name=current
                    ) from e
                if target is not None:
                    logger.debug(f"'{current}' -> '{target}' (route '{key}')")
                    return target
                logger.debug(f"Route '{key}' from '{current}' has no target, trying next edge")

        return None


class _Run:
    """Per-call bookkeeping for execute()"""

    def __init__(self, started_at: datetime, started: float):
        self.started_at = started_at
        self.started = started
        self.executed: List[str] = []
        self.logs: List[ExecutionLog] = []

    def log(self, node_name: str, status: NodeStatus, message: str) -> None:
        self.logs.append(ExecutionLog(
            timestamp=datetime.now(timezone.utc),
            node_name=node_name,
            status=status,
            message=message,
        ))
        logger.debug(f"{node_name}: {message}")

    def finish(
        self,
        status: ExecutionStatus,
        final_state: Any,
        error: Optional[str] = None,
        failed_node: Optional[str] = None,
        next_node: Optional[str] = None,
    ) -> ExecutionResult:
        return ExecutionResult(
            status=status,
            final_state=final_state,
            executed_nodes=list(self.executed),
            error=error,
            failed_node=failed_node,
            next_node=next_node,
            logs=self.logs,
            metadata=ExecutionMetadata(
                started_at=self.started_at,
                finished_at=datetime.now(timezone.utc),
                duration_ms=(time.perf_counter() - self.started) * 1000,
                step_count=len(self.executed),
            ),
        )
