"""
Tests for the parallel processing module.

Tests cover:
- ExecutorStrategy implementations (ThreadPool, Deferred)
- ProgressAggregator completion counting, throttling and thread safety
- ProgressState and ProgressUpdate dataclasses
"""

import threading
import time
from queue import Queue

import pytest

from feedscribe.parallel import (
    DeferredStrategy,
    ProgressAggregator,
    ProgressState,
    ProgressUpdate,
    ThreadPoolStrategy,
)


def _drain(queue):
    messages = []
    while not queue.empty():
        messages.append(queue.get_nowait())
    return messages


class TestDeferredStrategy:
    """Test DeferredStrategy for deterministic, chosen-order execution."""

    def test_submit_does_not_run_the_task(self):
        """Submit only queues; the Future is not done yet."""
        calls = []
        strategy = DeferredStrategy()
        future = strategy.submit(calls.append, 1)

        assert calls == []
        assert not future.done()
        assert strategy.pending_count == 1

    def test_run_pending_in_submission_order(self):
        """run_pending() without order runs everything in submission order."""
        calls = []
        strategy = DeferredStrategy()
        futures = [strategy.submit(lambda x: calls.append(x) or x * 2, i) for i in range(3)]

        assert strategy.run_pending() == 3
        assert calls == [0, 1, 2]
        assert [f.result() for f in futures] == [0, 2, 4]
        assert strategy.pending_count == 0

    def test_run_pending_in_explicit_order(self):
        """An explicit order chooses which tasks run, and when."""
        calls = []
        strategy = DeferredStrategy()
        for i in range(3):
            strategy.submit(calls.append, i)

        strategy.run_pending(order=[2, 0, 1])
        assert calls == [2, 0, 1]

    def test_unlisted_tasks_stay_queued(self):
        """Tasks not listed in order remain pending."""
        calls = []
        strategy = DeferredStrategy()
        futures = [strategy.submit(calls.append, i) for i in range(3)]

        assert strategy.run_pending(order=[1]) == 1
        assert calls == [1]
        assert strategy.pending_count == 2
        assert not futures[0].done()

        # Indexes refer to the queue as it is now: [0, 2]
        strategy.run_pending(order=[1, 0])
        assert calls == [1, 2, 0]

    def test_exceptions_are_captured_in_the_future(self):
        """A failing task does not stop the others."""
        def raise_error(x):
            raise ValueError("Test error")

        strategy = DeferredStrategy()
        bad = strategy.submit(raise_error, 1)
        good = strategy.submit(lambda x: x + 1, 1)
        strategy.run_pending()

        with pytest.raises(ValueError, match="Test error"):
            bad.result()
        assert good.result() == 2

    def test_shutdown_with_cancel_drops_pending(self):
        """cancel_futures cancels everything still queued."""
        calls = []
        strategy = DeferredStrategy()
        future = strategy.submit(calls.append, 1)

        strategy.shutdown(wait=False, cancel_futures=True)

        assert future.cancelled()
        assert strategy.pending_count == 0
        assert calls == []

    def test_context_manager_runs_pending_on_exit(self):
        """Leaving the context waits, which runs what is queued."""
        calls = []
        with DeferredStrategy() as strategy:
            strategy.submit(calls.append, "a")
        assert calls == ["a"]

    def test_max_workers_is_one(self):
        assert DeferredStrategy().max_workers == 1


class TestThreadPoolStrategy:
    """Test ThreadPoolStrategy for parallel execution."""

    def test_threadpool_default_max_workers(self):
        """Default max_workers comes from config."""
        from feedscribe.config import PARALLEL_MAX_WORKERS
        strategy = ThreadPoolStrategy()
        assert strategy.max_workers == PARALLEL_MAX_WORKERS
        strategy.shutdown()

    def test_threadpool_custom_max_workers(self):
        """Custom max_workers is respected."""
        strategy = ThreadPoolStrategy(max_workers=2)
        assert strategy.max_workers == 2
        strategy.shutdown()

    def test_threadpool_submit_returns_future(self):
        """Submit returns a Future for async result retrieval."""
        with ThreadPoolStrategy(max_workers=2) as strategy:
            future = strategy.submit(lambda x: x * 2, 21)
            assert future.result(timeout=1) == 42

    def test_threadpool_runs_off_the_caller_thread(self):
        """Tasks run on worker threads, never on the submitting thread."""
        with ThreadPoolStrategy(max_workers=2) as strategy:
            future = strategy.submit(lambda _: threading.current_thread().name, None)
            name = future.result(timeout=1)
        assert name.startswith("feedscribe-request")
        assert name != threading.current_thread().name

    def test_threadpool_executes_concurrently(self):
        """ThreadPool executes tasks concurrently."""
        start_times = []
        end_times = []

        def slow_task(x):
            start_times.append(time.time())
            time.sleep(0.1)
            end_times.append(time.time())
            return x

        with ThreadPoolStrategy(max_workers=4) as strategy:
            futures = [strategy.submit(slow_task, i) for i in range(4)]
            for f in futures:
                f.result(timeout=2)

        # If sequential, total time would be ~0.4s; parallel should be ~0.1s
        total_duration = max(end_times) - min(start_times)
        assert total_duration < 0.3, f"Tasks should run in parallel, took {total_duration}s"


class TestProgressAggregator:
    """Test ProgressAggregator completion counting and UI updates."""

    def test_aggregator_tracks_total_and_completed(self):
        """Aggregator tracks total and completed counts."""
        aggregator = ProgressAggregator(Queue(), throttle_ms=0)

        aggregator.set_total(5)
        assert aggregator.total == 5
        assert aggregator.completed == 0

        aggregator.complete("task1")
        assert aggregator.completed == 1

    def test_complete_sends_count_message(self):
        """Each completion sends '<completed>/<total> summaries completed'."""
        queue = Queue()
        aggregator = ProgressAggregator(queue, throttle_ms=0)
        aggregator.set_total(4)

        aggregator.complete("t1")
        aggregator.complete("t2")

        assert _drain(queue) == [
            ('progress', (25, "1/4 summaries completed")),
            ('progress', (50, "2/4 summaries completed")),
        ]

    def test_only_last_completion_is_finished(self):
        """finished is True for exactly the completion reaching the total."""
        aggregator = ProgressAggregator(Queue(), throttle_ms=0)
        aggregator.set_total(3)

        updates = [aggregator.complete(f"t{i}") for i in range(3)]

        assert [u.finished for u in updates] == [False, False, True]
        assert updates[-1] == ProgressUpdate(completed=3, total=3, finished=True)
        assert aggregator.is_done

    def test_over_completion_raises(self):
        """Completing more tasks than the total is an error."""
        aggregator = ProgressAggregator(Queue(), throttle_ms=0)
        aggregator.set_total(1)
        aggregator.complete("t1")

        with pytest.raises(RuntimeError, match="exceeds batch total"):
            aggregator.complete("t2")
        assert aggregator.completed == 1

    def test_completion_always_sends_update(self):
        """complete() ignores the throttle."""
        queue = Queue()
        aggregator = ProgressAggregator(queue, throttle_ms=10_000)
        aggregator.set_total(2)

        aggregator.complete("t1")
        aggregator.complete("t2")

        assert len(_drain(queue)) == 2

    def test_update_sends_dispatching_message(self):
        """update() sends the task status as a 'dispatching' message."""
        queue = Queue()
        aggregator = ProgressAggregator(queue, throttle_ms=0)
        aggregator.set_total(2)

        aggregator.update("task1", "Summarizing task 1...")

        assert _drain(queue) == [('dispatching', "Summarizing task 1...")]

    def test_aggregator_throttles_rapid_updates(self):
        """Aggregator throttles rapid update() calls."""
        queue = Queue()
        aggregator = ProgressAggregator(queue, throttle_ms=500)
        aggregator.set_total(100)

        for i in range(50):
            aggregator.update(f"task{i}", f"Message {i}")

        msg_count = len(_drain(queue))
        assert msg_count < 10, f"Expected throttling, got {msg_count} messages"

    def test_completion_drops_task_message(self):
        """A completed task no longer has a status message."""
        aggregator = ProgressAggregator(Queue(), throttle_ms=0)
        aggregator.set_total(2)
        aggregator.update("t1", "running")

        aggregator.complete("t1")

        assert "t1" not in aggregator._state.task_messages

    def test_concurrent_completions_finish_once(self):
        """Racing threads: every completion counted, one finisher."""
        queue = Queue()
        aggregator = ProgressAggregator(queue, throttle_ms=0)
        count = 40
        aggregator.set_total(count)

        barrier = threading.Barrier(count)
        finished = []
        errors = []

        def complete(task_id):
            try:
                barrier.wait()
                if aggregator.complete(task_id).finished:
                    finished.append(task_id)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=complete, args=(f"t{i}",)) for i in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors, f"Thread safety errors: {errors}"
        assert len(finished) == 1
        assert aggregator.completed == count
        counts = [message for _, (_, message) in _drain(queue)]
        assert counts == [f"{n}/{count} summaries completed" for n in range(1, count + 1)]

    def test_set_total_resets_state(self):
        """set_total() starts a fresh count."""
        aggregator = ProgressAggregator(Queue(), throttle_ms=0)
        aggregator.set_total(1)
        aggregator.complete("t1")

        aggregator.set_total(2)
        assert aggregator.completed == 0
        assert not aggregator.is_done


class TestProgressState:
    """Test ProgressState dataclass."""

    def test_progress_state_defaults(self):
        """ProgressState has correct defaults."""
        state = ProgressState(total_tasks=10)
        assert state.total_tasks == 10
        assert state.completed_tasks == 0
        assert state.task_messages == {}

    def test_progress_state_percentage_calculation(self):
        state = ProgressState(total_tasks=10, completed_tasks=3)
        assert state.percentage == 30

    def test_progress_state_zero_total(self):
        """ProgressState handles zero total gracefully."""
        state = ProgressState(total_tasks=0)
        assert state.percentage == 0
        assert not state.is_done


class TestProgressUpdate:
    def test_message(self):
        assert ProgressUpdate(2, 5, False).message == "2/5 summaries completed"
