from typing import List, Optional


class WorkflowError(Exception):
    """Base class for every error raised by the workflow engine"""


class ConfigurationError(WorkflowError, ValueError):
    """A graph was described incorrectly while it was being built"""


class DuplicateNodeError(ConfigurationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Node '{name}' already exists in the graph")


class UnknownNodeError(ConfigurationError):
    def __init__(self, name: str, role: str = "Node"):
        self.name = name
        self.role = role
        super().__init__(f"{role} '{name}' does not exist")


class MissingEntryPointError(ConfigurationError):
    def __init__(self):
        super().__init__("Graph entry point must be set before building")


class CyclicGraphError(WorkflowError):
    """
    Raised by build() when the graph contains a cycle.

    `path` lists the nodes on the cycle, starting and ending with the same node.
    """

    def __init__(self, path: List[str]):
        self.path = list(path)
        super().__init__(f"Graph contains a cycle, which is not allowed: {' -> '.join(self.path)}")


class ExecutionError(WorkflowError):
    """A node handler (or its routing decision) failed during execution"""

    def __init__(self, message: str, node_name: Optional[str] = None):
        self.node_name = node_name
        super().__init__(message)
