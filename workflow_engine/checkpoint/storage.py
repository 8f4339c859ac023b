from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from datetime import datetime
from pathlib import Path
import asyncio
import logging

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class Checkpoint(BaseModel):
    """Snapshot of a workflow's state at a given node"""
    id: str
    workflow_id: str
    current_node: str
    state: Any
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None


@runtime_checkable
class CheckpointStorage(Protocol):
    """
    Persistence contract behind CheckpointManager.

    Implementations own durability and must make concurrent calls for the same
    workflow id safe. Errors they raise reach the manager's caller unchanged.
    """

    async def save(self, checkpoint: Checkpoint) -> None: ...

    async def load(self, checkpoint_id: str) -> Optional[Checkpoint]: ...

    async def list(self, workflow_id: str) -> List[Checkpoint]: ...

    async def delete(self, checkpoint_id: str) -> None: ...

    async def delete_by_workflow(self, workflow_id: str) -> None: ...


class InMemoryCheckpointStorage:
    """
    Non-durable storage: a single id -> checkpoint mapping.

    Checkpoints are deep-copied on the way in and out so a stored snapshot
    never changes under the caller. There is no locking; this relies on
    cooperative scheduling within one event loop.
    """

    def __init__(self):
        self.checkpoints: Dict[str, Checkpoint] = {}

    async def save(self, checkpoint: Checkpoint) -> None:
        self.checkpoints[checkpoint.id] = checkpoint.model_copy(deep=True)

    async def load(self, checkpoint_id: str) -> Optional[Checkpoint]:
        checkpoint = self.checkpoints.get(checkpoint_id)
        return checkpoint.model_copy(deep=True) if checkpoint else None

    async def list(self, workflow_id: str) -> List[Checkpoint]:
        return [
            cp.model_copy(deep=True)
            for cp in self.checkpoints.values()
            if cp.workflow_id == workflow_id
        ]

    async def delete(self, checkpoint_id: str) -> None:
        self.checkpoints.pop(checkpoint_id, None)

    async def delete_by_workflow(self, workflow_id: str) -> None:
        for checkpoint_id in [cp.id for cp in self.checkpoints.values() if cp.workflow_id == workflow_id]:
            del self.checkpoints[checkpoint_id]


class JsonFileCheckpointStorage:
    """
    Durable storage keeping one JSON file per checkpoint in `directory`.

    State must be JSON-serialisable; on load it comes back as plain JSON
    types. File access runs in a worker thread so the event loop is not blocked.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, checkpoint_id: str) -> Optional[Path]:
        # Ids map straight to file names; anything that could escape the
        # directory cannot be a stored checkpoint.
        if not checkpoint_id or Path(checkpoint_id).name != checkpoint_id:
            return None
        return self.directory / f"{checkpoint_id}.json"

    def _write(self, checkpoint: Checkpoint) -> None:
        path = self._path(checkpoint.id)
        if path is None:
            raise ValueError(f"Invalid checkpoint id '{checkpoint.id}'")
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(checkpoint.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(path)

    def _read(self, path: Path) -> Checkpoint:
        return Checkpoint.model_validate_json(path.read_text(encoding="utf-8"))

    def _read_all(self) -> List[Checkpoint]:
        """
        Every checkpoint currently on disk.

        Files removed between listing the directory and reading them (another
        workflow's cleanup, say) are skipped. Files that cannot be parsed are
        skipped with a warning, since they cannot be attributed to any
        workflow; load() of such an id still raises. Other OS errors propagate.
        """
        if not self.directory.exists():
            return []
        checkpoints: List[Checkpoint] = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                checkpoints.append(self._read(path))
            except FileNotFoundError:
                continue
            except ValidationError as e:
                logger.warning(f"Skipping unreadable checkpoint file {path.name}: {e}")
        return checkpoints

    def _load(self, checkpoint_id: str) -> Optional[Checkpoint]:
        path = self._path(checkpoint_id)
        if path is None:
            return None
        try:
            return self._read(path)
        except FileNotFoundError:
            return None

    def _delete(self, checkpoint_id: str) -> None:
        path = self._path(checkpoint_id)
        if path is not None:
            path.unlink(missing_ok=True)

    def _delete_by_workflow(self, workflow_id: str) -> None:
        for checkpoint in self._read_all():
            if checkpoint.workflow_id == workflow_id:
                self._delete(checkpoint.id)
        logger.debug(f"Removed checkpoint files for workflow {workflow_id}")

    async def save(self, checkpoint: Checkpoint) -> None:
        await asyncio.to_thread(self._write, checkpoint)

    async def load(self, checkpoint_id: str) -> Optional[Checkpoint]:
        return await asyncio.to_thread(self._load, checkpoint_id)

    async def list(self, workflow_id: str) -> List[Checkpoint]:
        checkpoints = await asyncio.to_thread(self._read_all)
        return [cp for cp in checkpoints if cp.workflow_id == workflow_id]

    async def delete(self, checkpoint_id: str) -> None:
        await asyncio.to_thread(self._delete, checkpoint_id)

    async def delete_by_workflow(self, workflow_id: str) -> None:
        await asyncio.to_thread(self._delete_by_workflow, workflow_id)
