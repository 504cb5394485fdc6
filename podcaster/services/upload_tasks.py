"""Upload task tracking: a reducer over task events plus a per-owner registry."""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Union
from ..config import settings
from ..core.session import AuthSession, SessionBroker, SessionEvent
from ..utils.constants import UploadTaskState
from ..utils.helpers import generate_task_id


@dataclass(frozen=True)
class UploadTask:
    """One in-flight or finished upload attempt. Lives only in memory."""

    id: str
    owner_id: str
    file_name: str
    byte_size: int
    content_type: Optional[str] = None
    progress: float = 0.0
    state: UploadTaskState = UploadTaskState.PENDING
    error: Optional[str] = None
    storage_url: Optional[str] = None
    record_id: Optional[str] = None


@dataclass(frozen=True)
class TaskAdded:
    task: UploadTask


@dataclass(frozen=True)
class UploadStarted:
    task_id: str


@dataclass(frozen=True)
class ProgressReported:
    task_id: str
    loaded: int
    total: int


@dataclass(frozen=True)
class UploadCompleted:
    task_id: str
    storage_url: str
    record_id: Optional[str] = None


@dataclass(frozen=True)
class UploadFailed:
    task_id: str
    message: str


@dataclass(frozen=True)
class TaskRemoved:
    task_id: str


UploadTaskEvent = Union[
    TaskAdded, UploadStarted, ProgressReported, UploadCompleted, UploadFailed, TaskRemoved
]


def reduce_upload_tasks(
    tasks: Dict[str, UploadTask], event: UploadTaskEvent
) -> Dict[str, UploadTask]:
    """
    Apply one event and return the next task map; the input is never mutated.
    Terminal tasks ignore further events, progress never moves backwards and
    events for unknown ids are dropped.
    """
    if isinstance(event, TaskAdded):
        return {**tasks, event.task.id: event.task}

    if isinstance(event, TaskRemoved):
        return {task_id: task for task_id, task in tasks.items() if task_id != event.task_id}

    task = tasks.get(event.task_id)
    if task is None or task.state.is_terminal:
        return tasks

    if isinstance(event, UploadStarted):
        if task.state is not UploadTaskState.PENDING:
            return tasks
        updated = replace(task, state=UploadTaskState.UPLOADING)
    elif isinstance(event, ProgressReported):
        if event.total <= 0:
            return tasks
        progress = min(100.0, max(0.0, event.loaded / event.total * 100))
        if progress <= task.progress:
            return tasks
        updated = replace(task, progress=progress)
    elif isinstance(event, UploadCompleted):
        if task.state is not UploadTaskState.UPLOADING:
            return tasks
        updated = replace(
            task,
            state=UploadTaskState.COMPLETED,
            progress=100.0,
            storage_url=event.storage_url,
            record_id=event.record_id,
        )
    elif isinstance(event, UploadFailed):
        updated = replace(task, state=UploadTaskState.ERROR, error=event.message)
    else:
        raise TypeError(f"Unknown upload task event: {event!r}")

    return {**tasks, task.id: updated}


class UploadTaskRegistry:
    """
    Upload tasks per owner.
    Handlers run on the event loop thread, so dispatches never interleave.
    An owner's tasks are dropped when that owner signs out, and only the
    newest history_limit finished tasks are kept per owner.
    """

    def __init__(
        self, broker: Optional[SessionBroker] = None, history_limit: Optional[int] = None
    ):
        self._tasks: Dict[str, Dict[str, UploadTask]] = {}
        self.history_limit = (
            settings.upload_task_history if history_limit is None else history_limit
        )
        self._unsubscribe = broker.subscribe(self._on_session_event) if broker else None

    def _on_session_event(self, event: SessionEvent, session: AuthSession) -> None:
        if event is SessionEvent.SIGNED_OUT:
            self._tasks.pop(session.user_id, None)

    def create_task(
        self,
        owner_id: str,
        file_name: str,
        byte_size: int,
        content_type: Optional[str],
        rejection: Optional[str] = None,
    ) -> UploadTask:
        """Register a task; a rejection reason puts it straight into error."""
        task = UploadTask(
            id=generate_task_id(),
            owner_id=owner_id,
            file_name=file_name,
            byte_size=byte_size,
            content_type=content_type,
            state=UploadTaskState.ERROR if rejection else UploadTaskState.PENDING,
            error=rejection,
        )
        self.dispatch(owner_id, TaskAdded(task))
        return task

    def dispatch(self, owner_id: str, event: UploadTaskEvent) -> None:
        """Apply an event to one owner's tasks."""
        tasks = self._evict_finished(reduce_upload_tasks(self._tasks.get(owner_id, {}), event))
        if tasks:
            self._tasks[owner_id] = tasks
        else:
            self._tasks.pop(owner_id, None)

    def _evict_finished(self, tasks: Dict[str, UploadTask]) -> Dict[str, UploadTask]:
        finished = [task_id for task_id, task in tasks.items() if task.state.is_terminal]
        excess = len(finished) - self.history_limit
        if excess <= 0:
            return tasks
        dropped = set(finished[:excess])
        return {task_id: task for task_id, task in tasks.items() if task_id not in dropped}

    def list(self, owner_id: str) -> List[UploadTask]:
        """Tasks in the order they were added."""
        return list(self._tasks.get(owner_id, {}).values())

    def get(self, owner_id: str, task_id: str) -> Optional[UploadTask]:
        return self._tasks.get(owner_id, {}).get(task_id)

    def close(self) -> None:
        """Stop listening to session changes."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
