"""
Result Types for Batch Summarization

This module defines the data structures passed between the request client,
the batch orchestrator and the report presenter.

Key Types:
    RequestResult - Outcome of one summarization request
    OutputDocument - Append-only list of report entries for one batch

Usage:
    result = RequestResult(
        success=True,
        text="The council approved the budget...",
        model_name="gemma3:1b",
        elapsed_seconds=4.2
    )
"""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestResult:
    """
    Outcome of one summarization request, passed to its completion callback.

    Attributes:
        success: Whether the service returned a summary.
        text: The summary (empty on failure).
        error_message: Diagnostic detail when success is False.
        model_name: Model that served the request.
        elapsed_seconds: Wall-clock time of the request.
    """
    success: bool
    text: str = ""
    error_message: str | None = None
    model_name: str = ""
    elapsed_seconds: float = 0.0

    @classmethod
    def failure(cls, error_message: str, **kwargs) -> RequestResult:
        """Build a failed result; an empty message becomes a generic one."""
        return cls(
            success=False,
            error_message=error_message or "Unknown error during summarization request",
            **kwargs
        )


@dataclass(frozen=True)
class ReportEntry:
    """One summarized entry as it appears in the report."""
    entry_id: str
    title: str
    block: str


class OutputDocument:
    """
    Append-only sequence of report entries for one batch.

    Shared by every completion callback of the batch. Entries are kept in
    the order the callbacks appended them (arrival order), which is
    generally not the order the entries were selected in.
    """

    def __init__(self):
        self._entries: list[ReportEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: ReportEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    @property
    def entries(self) -> list[ReportEntry]:
        """Snapshot copy of the entries."""
        with self._lock:
            return list(self._entries)

    @property
    def titles(self) -> list[str]:
        return [entry.title for entry in self.entries]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def render(self) -> str:
        """All entry blocks concatenated in arrival order."""
        return "".join(entry.block for entry in self.entries)
