"""
Request execution strategies for FeedScribe.

Implements Strategy Pattern to separate "what to run" from "where and when
to run it". Enables dependency injection for testing.

Design Principles:
- Strategy Pattern: Different execution strategies (ThreadPool, Deferred)
  implement the same interface, allowing runtime selection.
- Dependency Injection: The request client accepts a strategy as a
  parameter, enabling deterministic testing with DeferredStrategy.
- Both strategies honour the asynchronous contract of submit(): the
  submitted function never runs on the caller's stack before submit()
  returns.

Usage:
    # Production (requests run on worker threads)
    strategy = ThreadPoolStrategy(max_workers=4)

    # Testing (nothing runs until the test says so, in the order it says)
    strategy = DeferredStrategy()
    future = strategy.submit(fn, item)
    strategy.run_pending(order=[2, 0, 1])
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, TypeVar

from feedscribe.config import PARALLEL_MAX_WORKERS

T = TypeVar('T')
R = TypeVar('R')


class ExecutorStrategy(ABC):
    """
    Abstract strategy for asynchronous execution.

    Attributes:
        max_workers: Number of concurrent workers (1 for deferred).
    """

    max_workers: int

    @abstractmethod
    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        """
        Submit a single task for execution.

        Args:
            fn: Function to execute.
            item: Argument to pass to the function.

        Returns:
            Future object that will contain the result.
        """

    @abstractmethod
    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """
        Shutdown the executor and release resources.

        Args:
            wait: If True, wait for pending tasks to complete.
            cancel_futures: If True, cancel pending futures.
        """

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensures cleanup."""
        self.shutdown(wait=True)
        return False


class ThreadPoolStrategy(ExecutorStrategy):
    """
    Thread-based execution strategy.

    Summarization requests are network-bound (the GIL is released while
    waiting on the Ollama socket), so threads give real concurrency here.

    Args:
        max_workers: Maximum concurrent threads. Defaults to
                    PARALLEL_MAX_WORKERS from config.

    Example:
        with ThreadPoolStrategy(max_workers=2) as strategy:
            future = strategy.submit(client.generate_from_request, request)
    """

    def __init__(self, max_workers: int = None):
        if max_workers is None:
            max_workers = PARALLEL_MAX_WORKERS

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="feedscribe-request"
        )
        self.max_workers = max_workers

    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        """Submit a single task to the thread pool."""
        return self._executor.submit(fn, item)

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """Shutdown the thread pool."""
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)


class DeferredStrategy(ExecutorStrategy):
    """
    Deferred execution strategy for testing and debugging.

    submit() only queues the task and returns a pending Future. Tasks run
    on the caller's thread when run_pending() is called, one at a time, in
    submission order or in an explicit order. This makes arrival order a
    test parameter while keeping the "never before submit returns" contract
    of the threaded strategy.

    Benefits for testing:
    - Deterministic, chosen completion order
    - No thread interleaving
    - Tasks can be left pending forever (unresponsive request)

    Example:
        strategy = DeferredStrategy()
        client = OllamaRequestClient(strategy=strategy)
        handle = orchestrator.start_batch(entries, client, extractor, prompt)
        strategy.run_pending(order=[2, 0, 1])
    """

    def __init__(self):
        """Initialize deferred strategy with max_workers=1."""
        self.max_workers = 1
        self._pending: list[tuple[Future, Callable, object]] = []

    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        """Queue the task and return a Future that is not yet done."""
        future: Future = Future()
        self._pending.append((future, fn, item))
        return future

    @property
    def pending_count(self) -> int:
        """Number of queued tasks that have not run yet."""
        return len(self._pending)

    def run_pending(self, order: list[int] | None = None) -> int:
        """
        Run queued tasks.

        Args:
            order: Indexes into the current pending queue, in the order they
                  should run. Tasks not listed stay queued. None runs every
                  queued task in submission order.

        Returns:
            Number of tasks that ran.
        """
        pending = self._pending
        if order is None:
            selected, remaining = pending, []
        else:
            selected = [pending[i] for i in order]
            chosen = set(order)
            remaining = [task for i, task in enumerate(pending) if i not in chosen]
        self._pending = remaining

        ran = 0
        for future, fn, item in selected:
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(fn(item))
            except Exception as e:
                future.set_exception(e)
            ran += 1
        return ran

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """Cancel or run whatever is still queued."""
        if cancel_futures:
            for future, _, _ in self._pending:
                future.cancel()
            self._pending = []
        elif wait:
            self.run_pending()
