from typing import Dict, List, Optional
import logging

from .models import WorkflowGraph

logger = logging.getLogger(__name__)


class WorkflowRegistry:
    """Named, already-built graphs that can be run on request"""

    def __init__(self):
        self.graphs: Dict[str, WorkflowGraph] = {}

    def register(self, name: str, graph: WorkflowGraph) -> None:
        """Store a built graph under `name`, replacing any previous one."""
        if name in self.graphs:
            logger.warning(f"Replacing registered workflow '{name}'")
        self.graphs[name] = graph

    def get(self, name: str) -> Optional[WorkflowGraph]:
        return self.graphs.get(name)

    def list_workflows(self) -> List[Dict[str, object]]:
        return [
            {
                "name": name,
                "entry_point": graph.entry_point,
                "node_count": len(graph.nodes),
                "edge_count": graph.edge_count,
            }
            for name, graph in self.graphs.items()
        ]
