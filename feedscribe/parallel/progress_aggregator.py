"""
Progress aggregation for concurrent summarization requests.

Collects completions from request callbacks that may run on any worker
thread and sends unified updates to the UI queue. This is also where a
batch's completion counter lives: the increment, the comparison against
the total and the progress message happen under one lock, so exactly one
completion observes "all done".

Design Principles:
- Thread Safety: All public methods use locking for concurrent access.
- Throttling: "Summarizing ..." status messages are throttled; completions
  always send an update.
- Single Finisher: complete() reports finished=True to exactly one caller.

Usage:
    aggregator = ProgressAggregator(ui_queue, throttle_ms=100)
    aggregator.set_total(3)

    # From request callbacks (any thread):
    update = aggregator.complete(entry_id)
    if update.finished:
        show_report()

    # UI receives:
    # ('progress', (33, "1/3 summaries completed"))
"""

from dataclasses import dataclass, field
from queue import Queue
import threading
import time


@dataclass
class ProgressState:
    """
    Tracks progress across concurrent requests.

    Mutable state container for the aggregator. Not thread-safe on its own;
    ProgressAggregator provides the locking.

    Attributes:
        total_tasks: Number of entries in the batch (fixed at batch start).
        completed_tasks: Number of entries that have finished, whatever the
                         outcome. Never decremented.
        task_messages: Map of task_id -> current status message.
    """
    total_tasks: int
    completed_tasks: int = 0
    task_messages: dict = field(default_factory=dict)

    @property
    def percentage(self) -> int:
        """Integer percentage (0-100) of completed tasks."""
        if self.total_tasks == 0:
            return 0
        return int((self.completed_tasks / self.total_tasks) * 100)

    @property
    def is_done(self) -> bool:
        """True once every task has completed."""
        return self.total_tasks > 0 and self.completed_tasks == self.total_tasks


@dataclass(frozen=True)
class ProgressUpdate:
    """
    Snapshot returned by ProgressAggregator.complete().

    Attributes:
        completed: Completed count right after this completion.
        total: Batch total.
        finished: True only for the completion that made completed == total.
    """
    completed: int
    total: int
    finished: bool

    @property
    def message(self) -> str:
        return f"{self.completed}/{self.total} summaries completed"


class ProgressAggregator:
    """
    Aggregates completions from concurrent requests into unified UI updates.

    Features:
    - Thread-safe: All methods can be called from multiple threads.
    - Throttled: update() messages sent at most once per throttle_ms.
    - Completion priority: complete() always sends an immediate update.
    - Exactly-once finish: the increment-and-compare is one critical section.

    Args:
        ui_queue: Queue for sending progress updates to the UI thread.
                  Messages are tuples: ('progress', (percentage, message))
                  and ('dispatching', message).
        throttle_ms: Minimum milliseconds between update() messages.
    """

    def __init__(self, ui_queue: Queue, throttle_ms: int = 100):
        self.ui_queue = ui_queue
        self.throttle_ms = throttle_ms
        self._state = ProgressState(total_tasks=0)
        self._last_update = 0.0
        self._lock = threading.Lock()

    def set_total(self, count: int) -> None:
        """
        Set total number of tasks and reset state.

        Must be called before any completion of the batch is recorded.
        """
        with self._lock:
            self._state = ProgressState(total_tasks=count)

    def update(self, task_id: str, message: str) -> None:
        """
        Update the status message for a task (throttled).

        Thread-safe: Can be called from multiple threads.
        """
        with self._lock:
            self._state.task_messages[task_id] = message
            self._maybe_send_update(message)

    def complete(self, task_id: str) -> ProgressUpdate:
        """
        Record one completion and send a progress update.

        Increments the completed count, drops the task's status message and
        sends "<completed>/<total> summaries completed". The returned
        update has finished=True for exactly one call per batch: the one
        whose increment made completed == total.

        Thread-safe: Can be called from multiple worker threads.

        Raises:
            RuntimeError: If more completions are recorded than the total.
        """
        with self._lock:
            state = self._state
            if state.completed_tasks >= state.total_tasks:
                raise RuntimeError(
                    f"Completion for {task_id!r} exceeds batch total {state.total_tasks}"
                )
            state.completed_tasks += 1
            state.task_messages.pop(task_id, None)
            update = ProgressUpdate(
                completed=state.completed_tasks,
                total=state.total_tasks,
                finished=state.completed_tasks == state.total_tasks,
            )
            self.ui_queue.put(('progress', (state.percentage, update.message)))
            self._last_update = time.time() * 1000
            return update

    def _maybe_send_update(self, message: str) -> None:
        """
        Send a status message if throttle time has passed.

        Internal method - must be called while holding _lock.
        """
        now = time.time() * 1000
        if now - self._last_update >= self.throttle_ms:
            self.ui_queue.put(('dispatching', message))
            self._last_update = now

    @property
    def completed(self) -> int:
        """Get number of completed tasks (thread-safe)."""
        with self._lock:
            return self._state.completed_tasks

    @property
    def total(self) -> int:
        """Get total number of tasks (thread-safe)."""
        with self._lock:
            return self._state.total_tasks

    @property
    def is_done(self) -> bool:
        """True once every task has completed (thread-safe)."""
        with self._lock:
            return self._state.is_done
