"""
Batch Orchestrator - Concurrent Summarization of Selected Feed Entries

This module dispatches one summarization request per selected entry and
collects the results, which arrive independently and in any order, into a
single report that is shown once every request has resolved.

Flow:
    start_batch(entries, client, extractor, system_instruction)
        ├── fresh BatchState: counter, OutputDocument, cleared ReportSink
        ├── header written to the sink
        ├── per entry (selection order):
        │     empty text  → counted as completed now, "skipping" notice
        │     otherwise   → Job; client.submit(text, instruction, job.complete)
        ├── selection marks of every entry cleared
        └── BatchHandle returned (nothing waited on)

    Job.complete(result)          (any thread, once per request)
        ├── success → entry block appended to document + sink (if sink live)
        ├── failure → "request_failed" notice, no entry
        └── BatchState.record_completion()
                └── the completion that makes completed == total shows the report

The completion count lives in a ProgressAggregator, whose lock makes the
increment-and-compare a single step: exactly one completion sees the batch
finish, whatever the arrival order or thread.

Notifications go to ui_queue as (message_type, payload) tuples:
    ('progress', (percentage, "<completed>/<total> summaries completed"))
    ('dispatching', "Summarizing <title>...")
    ('skipped', 'skipping "<title>" (no content)')
    ('request_failed', (title, detail))
    ('report_ready', sink_name)

Usage:
    orchestrator = BatchOrchestrator(selection_store, MarkdownReportPresenter())
    handle = orchestrator.start_batch(
        entries=selection_store.selected_items(),
        request_client=OllamaRequestClient(),
        extractor=HtmlTextExtractor(),
        system_instruction=get_system_instruction("summarize"),
    )
    handle.wait()
"""

from __future__ import annotations

import threading
from queue import Queue
from typing import TYPE_CHECKING, Callable

from feedscribe.config import PROGRESS_THROTTLE_MS
from feedscribe.exceptions import EmptySelectionError
from feedscribe.logging_config import Timer, debug_log, error, info, warning
from feedscribe.parallel import ProgressAggregator, ProgressUpdate
from feedscribe.report import (
    ReportMetadata,
    ReportPresenter,
    ReportSink,
    format_entry_block,
)
from feedscribe.sources import FeedEntry

from .result_types import OutputDocument, ReportEntry, RequestResult

if TYPE_CHECKING:
    from feedscribe.ai import OllamaRequestClient
    from feedscribe.extraction import HtmlTextExtractor
    from feedscribe.selection import SelectionStore

REPORT_BUFFER_NAME = "feed-summaries"


class BatchState:
    """
    State of one batch run, shared by all of its Jobs.

    Attributes:
        entries: Entries of the batch, in selection order.
        sink: Report buffer the batch writes into.
        presenter: Presenter that writes and shows the sink.
        document: Entries summarized so far, in arrival order.
        progress: Thread-safe completion counter.
        finalized: True once the report was shown.
    """

    def __init__(
        self,
        entries: list[FeedEntry],
        sink: ReportSink,
        presenter: ReportPresenter,
        ui_queue: Queue,
        throttle_ms: int = PROGRESS_THROTTLE_MS
    ):
        self.entries = tuple(entries)
        self.sink = sink
        self.presenter = presenter
        self.ui_queue = ui_queue
        self.document = OutputDocument()
        self.progress = ProgressAggregator(ui_queue, throttle_ms=throttle_ms)
        self.progress.set_total(len(self.entries))
        self.finalized = False
        self._append_lock = threading.Lock()
        self._done_event = threading.Event()

    @property
    def total(self) -> int:
        return self.progress.total

    @property
    def completed(self) -> int:
        return self.progress.completed

    @property
    def done(self) -> bool:
        return self._done_event.is_set()

    def add_summary(self, entry: FeedEntry, summary: str) -> bool:
        """
        Append an entry block to the document and the sink.

        Returns:
            False if the sink is gone (nothing appended).
        """
        # Document and sink must see the same order
        with self._append_lock:
            if not self.sink.is_live:
                debug_log(f"[BATCH] Sink gone; dropping summary of '{entry.title}'")
                return False
            block = format_entry_block(entry, summary)
            self.document.append(ReportEntry(entry.entry_id, entry.title, block))
            self.presenter.append(self.sink, block)
            return True

    def report_failure(self, entry: FeedEntry, detail: str) -> None:
        error(f"[BATCH] Summary failed for '{entry.title}': {detail}")
        self.ui_queue.put(('request_failed', (entry.title, detail)))

    def report_skip(self, entry: FeedEntry) -> None:
        message = f'skipping "{entry.title}" (no content)'
        info(f"[BATCH] {message}")
        self.ui_queue.put(('skipped', message))

    def record_completion(self, entry: FeedEntry) -> ProgressUpdate:
        """
        Count one finished entry; show the report if it was the last one.
        """
        update = self.progress.complete(entry.entry_id)
        info(f"[BATCH] {update.message}")
        if update.finished:
            self._finalize()
        return update

    def _finalize(self) -> None:
        """Show the report. Runs once per batch, for the last completion."""
        try:
            if self.sink.is_live:
                self.sink.goto_start()
                self.presenter.show(self.sink)
                self.finalized = True
                self.ui_queue.put(('report_ready', self.sink.name))
                info(f"[BATCH] Report ready: {len(self.document)}/{self.total} entries summarized")
            else:
                debug_log("[BATCH] Batch finished but the sink is gone; report not shown")
        except Exception as e:
            error(f"[BATCH] Showing the report failed: {e}", exc_info=True)
        finally:
            self._done_event.set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._done_event.wait(timeout)


class Job:
    """
    One dispatched entry: the entry plus the batch it belongs to.

    complete() is the request's completion callback. It contains every
    error it could raise, so a bad result can never stop sibling jobs or
    the request client's worker.
    """

    def __init__(self, entry: FeedEntry, batch: BatchState):
        self.entry = entry
        self.batch = batch
        self._fired = False
        self._lock = threading.Lock()

    def complete(self, result: RequestResult) -> None:
        with self._lock:
            if self._fired:
                warning(f"[BATCH] Duplicate completion for '{self.entry.title}' ignored")
                return
            self._fired = True

        try:
            if result.success:
                self.batch.add_summary(self.entry, result.text)
                debug_log(
                    f"[BATCH] Completed: '{self.entry.title}' "
                    f"({len(result.text)} chars in {result.elapsed_seconds:.1f}s)"
                )
            else:
                self.batch.report_failure(self.entry, result.error_message)
        except Exception as e:
            error(f"[BATCH] Could not record result for '{self.entry.title}': {e}", exc_info=True)

        self.batch.record_completion(self.entry)


class BatchHandle:
    """
    Caller's view of a running batch.

    start_batch() returns immediately; use wait() to block the caller
    (never the orchestrator) until the batch finished.
    """

    def __init__(self, state: BatchState, dispatched: int):
        self._state = state
        self.dispatched = dispatched

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def document(self) -> OutputDocument:
        return self._state.document

    @property
    def sink(self) -> ReportSink:
        return self._state.sink

    @property
    def total(self) -> int:
        return self._state.total

    @property
    def completed(self) -> int:
        return self._state.completed

    @property
    def done(self) -> bool:
        return self._state.done

    @property
    def finalized(self) -> bool:
        return self._state.finalized

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until the batch finished.

        Returns:
            True if finished, False if the timeout expired first. A batch
            with an unresponsive request never finishes.
        """
        return self._state.wait(timeout)


class BatchOrchestrator:
    """
    Runs summarization batches over selected feed entries.

    Attributes:
        selection_store: Store whose marks are cleared after dispatch.
        presenter: Presenter for the report sink.
        ui_queue: Notification queue (one per orchestrator, shared by its batches).
        sink_factory: Creates the report sink for each batch.
    """

    def __init__(
        self,
        selection_store: SelectionStore,
        presenter: ReportPresenter,
        ui_queue: Queue | None = None,
        sink_factory: Callable[[], ReportSink] | None = None,
        throttle_ms: int = PROGRESS_THROTTLE_MS
    ):
        self.selection_store = selection_store
        self.presenter = presenter
        self.ui_queue = ui_queue if ui_queue is not None else Queue()
        self.sink_factory = sink_factory or (lambda: ReportSink(REPORT_BUFFER_NAME))
        self.throttle_ms = throttle_ms

    def start_batch(
        self,
        entries: list[FeedEntry],
        request_client: OllamaRequestClient,
        extractor: HtmlTextExtractor,
        system_instruction: str
    ) -> BatchHandle:
        """
        Dispatch one summarization request per entry and return at once.

        Args:
            entries: Entries to summarize, in selection order.
            request_client: Anything with submit(text, system_instruction, on_complete)
                           and a model_name attribute.
            extractor: Anything with extract(entry) -> str.
            system_instruction: System message sent with every request.

        Returns:
            BatchHandle for the running batch.

        Raises:
            EmptySelectionError: If entries is empty. Nothing is mutated.
        """
        entries = list(entries)
        if not entries:
            raise EmptySelectionError("No entries selected; mark some entries first")

        sink = self.sink_factory()
        self.presenter.clear(sink)
        state = BatchState(entries, sink, self.presenter, self.ui_queue, self.throttle_ms)

        model_name = getattr(request_client, 'model_name', 'unknown')
        self.presenter.write_header(
            sink, ReportMetadata(model_name=model_name, entry_count=len(entries))
        )

        info(f"[BATCH] Starting batch of {len(entries)} entries (model={model_name})")

        dispatched = 0
        with Timer(f"Batch dispatch ({len(entries)} entries)"):
            for entry in entries:
                text = extractor.extract(entry)
                if not text.strip():
                    state.report_skip(entry)
                    state.record_completion(entry)
                    continue

                job = Job(entry, state)
                state.progress.update(entry.entry_id, f"Summarizing {entry.title}...")
                request_client.submit(text, system_instruction, job.complete)
                dispatched += 1

        # Marks are cleared right after dispatch, whatever the outcomes
        for entry in entries:
            self.selection_store.deselect(entry)

        debug_log(f"[BATCH] Dispatched {dispatched} requests, "
                  f"{len(entries) - dispatched} skipped")

        return BatchHandle(state, dispatched)

    def summarize_selected(
        self,
        request_client: OllamaRequestClient,
        extractor: HtmlTextExtractor,
        system_instruction: str
    ) -> BatchHandle:
        """
        Start a batch over a snapshot of the currently selected entries.

        Raises:
            EmptySelectionError: If nothing is selected.
        """
        return self.start_batch(
            self.selection_store.selected_items(),
            request_client,
            extractor,
            system_instruction
        )
