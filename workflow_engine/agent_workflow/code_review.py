from typing import Any, Callable, Dict, Optional

from workflow_engine.checkpoint import CheckpointManager
from workflow_engine.engine import GraphBuilder, WorkflowGraph
from workflow_engine.tools.code_analysis import (
    calculate_quality_score, check_complexity, detect_issues,
    extract_functions, final_review, suggest_improvements
)


DEFAULT_QUALITY_THRESHOLD = 7


def route_on_quality(state: Dict[str, Any]) -> str:
    """Good enough code goes straight to review, the rest collects suggestions first."""
    threshold = state.get("quality_threshold", DEFAULT_QUALITY_THRESHOLD)
    return "pass" if state.get("quality_score", 0) >= threshold else "needs_work"


def _checkpointed(
    node_name: str,
    handler: Callable[[Dict[str, Any]], Dict[str, Any]],
    checkpoints: Optional[CheckpointManager],
):
    """
    Wrap a handler so the state it produces is checkpointed.

    Only runs whose state carries a `workflow_id` are checkpointed; the
    checkpoint's node is the one that produced the state.
    """
    async def run(state: Dict[str, Any]) -> Dict[str, Any]:
        new_state = handler(state)
        workflow_id = new_state.get("workflow_id")
        if checkpoints is not None and workflow_id:
            await checkpoints.create_checkpoint(
                workflow_id, node_name, new_state, metadata={"workflow": "code_review"}
            )
        return new_state

    return run


def create_code_review_workflow(checkpoints: Optional[CheckpointManager] = None) -> WorkflowGraph:
    """
    Create the Code Review Mini-Agent workflow.

    extract_functions -> check_complexity -> detect_issues -> calculate_quality,
    then either final_review directly or via suggest_improvements when the
    quality score is below the threshold.
    """
    steps = [
        ("extract_functions", extract_functions),
        ("check_complexity", check_complexity),
        ("detect_issues", detect_issues),
        ("calculate_quality", calculate_quality_score),
        ("suggest_improvements", suggest_improvements),
        ("final_review", final_review),
    ]

    builder = GraphBuilder()
    for name, handler in steps:
        builder.add_node(name, _checkpointed(name, handler, checkpoints))

    return (
        builder
        .add_edge("extract_functions", "check_complexity")
        .add_edge("check_complexity", "detect_issues")
        .add_edge("detect_issues", "calculate_quality")
        .add_conditional_edge(
            "calculate_quality",
            route_on_quality,
            {"pass": "final_review", "needs_work": "suggest_improvements"},
        )
        .add_edge("suggest_improvements", "final_review")
        .set_entry_point("extract_functions")
        .build()
    )


# Sample code for testing
SAMPLE_CODE = '''
def normalise(values):
    total = sum(values)
    if total == 0:
        return values
    return [v / total for v in values]

def bucket(score, low, high):
    # TODO: make the bucket edges configurable
    if score < low:
        return "low"
    elif score < high:
        if score < (low + high) / 2:
            return "mid-low"
        return "mid-high"
    else:
        for edge in (high * 2, high * 4):
            if score < edge:
                return "high"
        return "extreme"
'''
