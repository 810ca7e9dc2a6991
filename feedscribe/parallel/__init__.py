"""
Concurrency utilities for FeedScribe.

This module provides Strategy Pattern-based asynchronous execution and
thread-safe progress counting for batches of summarization requests.

Components:
    ExecutorStrategy - Abstract base class defining the execution interface
    ThreadPoolStrategy - Thread-based execution (production)
    DeferredStrategy - Queue-until-told execution (testing/debugging)
    ProgressAggregator - Thread-safe completion counter with UI updates
    ProgressState - Counter state guarded by the aggregator
    ProgressUpdate - Result of recording one completion

Usage Example:
    from feedscribe.parallel import ThreadPoolStrategy, ProgressAggregator

    aggregator = ProgressAggregator(ui_queue)
    aggregator.set_total(len(entries))

    strategy = ThreadPoolStrategy(max_workers=4)
    future = strategy.submit(fetch_summary, request)

Testing Example:
    from feedscribe.parallel import DeferredStrategy

    strategy = DeferredStrategy()
    strategy.submit(fetch_summary, request)   # nothing runs yet
    strategy.run_pending(order=[0])           # now it does
"""

from .executor_strategy import (
    DeferredStrategy,
    ExecutorStrategy,
    ThreadPoolStrategy,
)
from .progress_aggregator import ProgressAggregator, ProgressState, ProgressUpdate

__all__ = [
    # Strategies
    'ExecutorStrategy',
    'ThreadPoolStrategy',
    'DeferredStrategy',
    # Progress tracking
    'ProgressAggregator',
    'ProgressState',
    'ProgressUpdate',
]
