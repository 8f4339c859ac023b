from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta, timezone
import logging
import time
import uuid

from .storage import Checkpoint, CheckpointStorage, InMemoryCheckpointStorage

logger = logging.getLogger(__name__)


class CheckpointManager:
    """
    Creates, loads and cleans up workflow checkpoints.

    The storage backend is injected. Without one the manager gets its own
    InMemoryCheckpointStorage, which is not durable; production callers pass a
    durable backend honouring the same contract.
    """

    def __init__(self, storage: Optional[CheckpointStorage] = None, id_prefix: str = "cp"):
        self.storage: CheckpointStorage = storage if storage is not None else InMemoryCheckpointStorage()
        self.id_prefix = id_prefix
        self._last_timestamp: Optional[datetime] = None

    async def create_checkpoint(
        self,
        workflow_id: str,
        current_node: str,
        state: Any,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Checkpoint:
        """Store a snapshot of `state` at `current_node` and return it."""
        checkpoint = Checkpoint(
            id=self._generate_checkpoint_id(),
            workflow_id=workflow_id,
            current_node=current_node,
            state=state,
            timestamp=self._next_timestamp(),
            metadata=metadata,
        )
        await self.storage.save(checkpoint)
        logger.info(f"Checkpoint {checkpoint.id} saved for workflow {workflow_id} at node '{current_node}'")
        return checkpoint

    async def load_checkpoint(self, checkpoint_id: str) -> Optional[Checkpoint]:
        return await self.storage.load(checkpoint_id)

    async def list_checkpoints(self, workflow_id: str) -> List[Checkpoint]:
        """All checkpoints of a workflow, most recent first."""
        checkpoints = await self.storage.list(workflow_id)
        return sorted(checkpoints, key=lambda cp: cp.timestamp, reverse=True)

    async def get_latest_checkpoint(self, workflow_id: str) -> Optional[Checkpoint]:
        checkpoints = await self.list_checkpoints(workflow_id)
        return checkpoints[0] if checkpoints else None

    async def delete_checkpoint(self, checkpoint_id: str) -> None:
        await self.storage.delete(checkpoint_id)

    async def cleanup(self, workflow_id: str) -> None:
        """Remove every checkpoint belonging to `workflow_id`."""
        await self.storage.delete_by_workflow(workflow_id)
        logger.info(f"Cleaned up checkpoints for workflow {workflow_id}")

    def _generate_checkpoint_id(self) -> str:
        # Time-based with a random suffix: unique enough, not unguessable.
        return f"{self.id_prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"

    def _next_timestamp(self) -> datetime:
        # Strictly increasing per manager so newest-first ordering never ties.
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now
