from fastapi import APIRouter, HTTPException
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
import logging

from workflow_engine.agent_workflow.code_review import create_code_review_workflow, SAMPLE_CODE
from workflow_engine.checkpoint import (
    Checkpoint, CheckpointManager, InMemoryCheckpointStorage, JsonFileCheckpointStorage
)
from workflow_engine.config import get_settings
from workflow_engine.engine import (
    ExecutionOptions, ExecutionResult, UnknownNodeError, WorkflowExecutor, WorkflowRegistry
)

logger = logging.getLogger(__name__)

router = APIRouter()

CODE_REVIEW_WORKFLOW = "code_review"

settings = get_settings()

# Service-wide instances, built once when the module loads. The checkpoint
# store is picked from settings and handed to the manager explicitly.
if settings.checkpoint_dir is not None:
    checkpoint_storage = JsonFileCheckpointStorage(settings.checkpoint_dir)
else:
    checkpoint_storage = InMemoryCheckpointStorage()
checkpoints = CheckpointManager(checkpoint_storage, id_prefix=settings.checkpoint_id_prefix)
executor = WorkflowExecutor(default_max_steps=settings.default_max_steps)
registry = WorkflowRegistry()

registry.register(CODE_REVIEW_WORKFLOW, create_code_review_workflow(checkpoints))


# Request/Response models
class RunWorkflowRequest(BaseModel):
    initial_state: Dict[str, Any] = {}
    max_steps: Optional[int] = Field(default=None, ge=1)
    resume_from: Optional[str] = None  # Node to start at instead of the entry point


class CodeReviewRequest(BaseModel):
    code: Optional[str] = None
    workflow_id: Optional[str] = None
    quality_threshold: float = 7


@router.get("/workflows")
async def list_workflows():
    """List registered workflows with summary information."""
    return {"workflows": registry.list_workflows()}


@router.post("/workflows/{name}/run", response_model=ExecutionResult)
async def run_workflow(name: str, request: RunWorkflowRequest):
    """
    Execute a registered workflow.

    Handler failures come back as a result with status "failed", not as an
    HTTP error. A partial result names the node to pass as `resume_from`
    together with its final state to continue the run.
    """
    graph = registry.get(name)
    if graph is None:
        raise HTTPException(status_code=404, detail=f"Workflow '{name}' not found")

    if request.resume_from is not None:
        try:
            graph = graph.with_entry_point(request.resume_from)
        except UnknownNodeError as e:
            raise HTTPException(status_code=404, detail=str(e))

    options = ExecutionOptions(max_steps=request.max_steps) if request.max_steps is not None else None
    result = await executor.execute(graph, request.initial_state, options)
    logger.info(f"Workflow '{name}' finished with status {result.status.value}")
    return result


@router.get("/checkpoints/{workflow_id}", response_model=List[Checkpoint])
async def list_checkpoints(workflow_id: str):
    """Checkpoints of a workflow, most recent first."""
    return await checkpoints.list_checkpoints(workflow_id)


@router.get("/checkpoints/{workflow_id}/latest", response_model=Checkpoint)
async def get_latest_checkpoint(workflow_id: str):
    checkpoint = await checkpoints.get_latest_checkpoint(workflow_id)
    if checkpoint is None:
        raise HTTPException(status_code=404, detail=f"No checkpoints for workflow '{workflow_id}'")
    return checkpoint


@router.delete("/checkpoints/{workflow_id}")
async def cleanup_checkpoints(workflow_id: str):
    await checkpoints.cleanup(workflow_id)
    return {"message": f"Checkpoints for workflow '{workflow_id}' removed"}


@router.get("/checkpoint/{checkpoint_id}", response_model=Checkpoint)
async def get_checkpoint(checkpoint_id: str):
    checkpoint = await checkpoints.load_checkpoint(checkpoint_id)
    if checkpoint is None:
        raise HTTPException(status_code=404, detail="Checkpoint not found")
    return checkpoint


@router.delete("/checkpoint/{checkpoint_id}")
async def delete_checkpoint(checkpoint_id: str):
    await checkpoints.delete_checkpoint(checkpoint_id)
    return {"message": f"Checkpoint '{checkpoint_id}' removed"}


@router.post("/demo/code-review")
async def demo_code_review(request: Optional[CodeReviewRequest] = None):
    """Demo endpoint to run code review on sample or provided code"""
    request = request or CodeReviewRequest()
    initial_state: Dict[str, Any] = {
        "code": request.code if request.code is not None else SAMPLE_CODE,
        "quality_threshold": request.quality_threshold,
    }
    if request.workflow_id:
        initial_state["workflow_id"] = request.workflow_id

    result = await executor.execute(registry.get(CODE_REVIEW_WORKFLOW), initial_state)
    state = result.final_state or {}

    return {
        "status": result.status.value,
        "error": result.error,
        "executed_nodes": result.executed_nodes,
        "results": {
            "quality_score": state.get("quality_score"),
            "quality_level": state.get("quality_level"),
            "review_status": state.get("review_status"),
            "function_count": state.get("function_count"),
            "issue_count": state.get("issue_count"),
            "suggestions": state.get("suggestions", []),
            "complexity_scores": state.get("complexity_scores", [])
        },
        "execution_log": [
            {
                "timestamp": log.timestamp.isoformat(),
                "node": log.node_name,
                "status": log.status.value,
                "message": log.message
            }
            for log in result.logs
        ]
    }
