"""
Summarization Package for FeedScribe - Batch Summarization of Feed Entries.

    from feedscribe.summarization import BatchOrchestrator, RequestResult

Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │  BatchOrchestrator.start_batch()                         │
    │      ↓ one Job per entry with text                       │
    │  Request client (OllamaRequestClient.submit)             │
    │      ↓ RequestResult, any order, once per Job            │
    │  Job.complete → OutputDocument + ReportSink + counter    │
    │      ↓ last completion only                              │
    │  ReportPresenter.show                                    │
    └──────────────────────────────────────────────────────────┘
"""

from .result_types import OutputDocument, ReportEntry, RequestResult
from .batch_orchestrator import (
    REPORT_BUFFER_NAME,
    BatchHandle,
    BatchOrchestrator,
    BatchState,
    Job,
)

__all__ = [
    # Result types
    'RequestResult',
    'ReportEntry',
    'OutputDocument',
    # Batch orchestration
    'BatchOrchestrator',
    'BatchState',
    'BatchHandle',
    'Job',
    'REPORT_BUFFER_NAME',
]
