from typing import Dict, List, Optional
import logging

from .errors import (
    ConfigurationError, CyclicGraphError, DuplicateNodeError,
    MissingEntryPointError, UnknownNodeError
)
from .models import (
    ConditionalEdge, DecideFunction, Edge, Node, NodeHandler,
    UnconditionalEdge, WorkflowGraph
)

logger = logging.getLogger(__name__)


class GraphBuilder:
    """
    Fluent builder for workflow graphs.

    Nodes and edges are accumulated in name-keyed containers; build() validates
    them and hands out an immutable WorkflowGraph. The builder itself is not
    safe for concurrent use.
    """

    def __init__(self):
        self._nodes: Dict[str, Node] = {}
        self._edges: Dict[str, List[Edge]] = {}  # Ordered per source, insertion order
        self._entry_point: Optional[str] = None

    def add_node(self, name: str, handler: NodeHandler) -> "GraphBuilder":
        """Register a node. Names are unique within a graph."""
        if name in self._nodes:
            raise DuplicateNodeError(name)
        if not callable(handler):
            raise ConfigurationError(f"Handler for node '{name}' is not callable")

        self._nodes[name] = Node(name=name, handler=handler)
        self._edges[name] = []
        return self

    def add_edge(self, source: str, target: str) -> "GraphBuilder":
        """Append an edge that is always taken after `source` completes."""
        self._require_node(source, "Source node")
        self._require_node(target, "Target node")

        self._edges[source].append(UnconditionalEdge(source=source, target=target))
        return self

    def add_conditional_edge(
        self, source: str, decide: DecideFunction, routes: Dict[str, str]
    ) -> "GraphBuilder":
        """
        Append an edge whose target is picked at run time.

        `decide(state)` must return one of the keys of `routes`; every route
        target has to be a registered node.
        """
        self._require_node(source, "Source node")
        if not routes:
            raise ConfigurationError(f"Conditional edge from '{source}' has no routes")
        for target in routes.values():
            self._require_node(target, "Target node")

        edge = ConditionalEdge(source=source, decide=decide, routes=dict(routes))
        self._edges[source].append(edge)
        return self

    def set_entry_point(self, name: str) -> "GraphBuilder":
        self._require_node(name, "Entry point node")
        self._entry_point = name
        return self

    def build(self) -> WorkflowGraph:
        """Validate the graph and return an immutable snapshot of it."""
        if self._entry_point is None:
            raise MissingEntryPointError()

        cycle = self._find_cycle()
        if cycle:
            raise CyclicGraphError(cycle)

        graph = WorkflowGraph(
            nodes=dict(self._nodes),
            edges={source: tuple(edges) for source, edges in self._edges.items()},
            entry_point=self._entry_point,
        )
        logger.debug(f"Built graph with {len(graph.nodes)} nodes, entry point '{graph.entry_point}'")
        return graph

    def _require_node(self, name: str, role: str) -> None:
        if name not in self._nodes:
            raise UnknownNodeError(name, role=role)

    def _successors(self, name: str) -> List[str]:
        # Every route of a conditional edge counts: the branch actually taken
        # depends on state and cannot be known here.
        targets: List[str] = []
        for edge in self._edges.get(name, []):
            targets.extend(edge.targets)
        return targets

    def _find_cycle(self) -> Optional[List[str]]:
        """
        Depth-first search from the entry point, then from every node not yet
        visited. A node seen again while still on the current path closes a
        cycle; the returned path starts and ends with that node.

        The search keeps its own stack of (node, successor iterator) pairs, so
        path length is not bounded by the interpreter's recursion limit.
        """
        visited = set()
        path: List[str] = []
        on_path = set()

        starts = [self._entry_point] + [name for name in self._nodes if name != self._entry_point]
        for start in starts:
            if start is None or start in visited:
                continue

            visited.add(start)
            path.append(start)
            on_path.add(start)
            pending = [(start, iter(self._successors(start)))]

            while pending:
                name, successors = pending[-1]
                target = next(successors, None)

                if target is None:
                    pending.pop()
                    path.pop()
                    on_path.discard(name)
                elif target in on_path:
                    return path[path.index(target):] + [target]
                elif target not in visited:
                    visited.add(target)
                    path.append(target)
                    on_path.add(target)
                    pending.append((target, iter(self._successors(target))))
        return None
