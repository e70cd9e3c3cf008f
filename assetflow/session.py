"""Process-wide state of a development session.

The BuildSession replaces module-level singletons: it holds the preview
server handle, the armed watch handles and the per-task run state. It is
mutated only from the event loop thread.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class TaskState(Enum):
    """Run state of one task.

    IDLE -> RUNNING -> IDLE
    RUNNING -> PENDING_RERUN (triggered again while running)
    PENDING_RERUN -> RUNNING (exactly one re-run) -> IDLE
    """
    IDLE = "idle"
    RUNNING = "running"
    PENDING_RERUN = "pending-rerun"


class StateError(RuntimeError):
    """Illegal task state transition (a scheduler bug)."""
    pass


@dataclass
class BuildSession:
    """Live resources and task states of one session."""

    server: Optional[Any] = None
    """Handle returned by ReloadSignal.serve(), released on stop."""

    watches: List[Any] = field(default_factory=list)
    """WatchHandles armed by the orchestrator."""

    states: Dict[str, TaskState] = field(default_factory=dict)

    runs: Dict[str, int] = field(default_factory=dict)
    """Completed executions per task id."""

    def state(self, task_id: str) -> TaskState:
        return self.states.get(task_id, TaskState.IDLE)

    @property
    def in_flight(self) -> List[str]:
        """Ids of tasks currently running."""
        return [
            tid for tid, state in self.states.items()
            if state is not TaskState.IDLE
        ]

    def begin(self, task_id: str) -> None:
        """Mark ``task_id`` as running.

        Raises:
            StateError: If the task is already running.
        """
        if self.state(task_id) is not TaskState.IDLE:
            raise StateError(f"Task '{task_id}' is already running")
        self.states[task_id] = TaskState.RUNNING

    def trigger(self, task_id: str) -> bool:
        """Record a new trigger for ``task_id``.

        Returns:
            True if the trigger requested a re-run of a running task,
            False if the task was idle or a re-run was already pending.
        """
        if self.state(task_id) is TaskState.RUNNING:
            self.states[task_id] = TaskState.PENDING_RERUN
            logger.debug("'%s' is running, re-run queued", task_id)
            return True
        return False

    def finish(self, task_id: str) -> bool:
        """Mark ``task_id`` as done.

        Returns:
            True if a re-run was requested while it ran.
        """
        state = self.state(task_id)
        if state is TaskState.IDLE:
            raise StateError(f"Task '{task_id}' is not running")
        self.states[task_id] = TaskState.IDLE
        self.runs[task_id] = self.runs.get(task_id, 0) + 1
        return state is TaskState.PENDING_RERUN

    def close_watches(self) -> None:
        """Close every watch handle, logging failures."""
        watches, self.watches = self.watches, []
        for handle in watches:
            try:
                handle.close()
            except Exception:
                logger.exception("Error closing watch handle %r", handle)

    def release(self) -> None:
        """Close the server and every watch handle. Safe to call twice."""
        self.close_watches()

        server, self.server = self.server, None
        if server is not None:
            try:
                server.close()
            except Exception:
                logger.exception("Error closing server handle")
