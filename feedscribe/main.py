"""
FeedScribe - Command Line Entry Point

Mark feed entries from a JSON export, then summarize every marked entry
with a local Ollama model into one Markdown report.

    python -m feedscribe --entries entries.json list
    python -m feedscribe --entries entries.json mark ID [ID ...]
    python -m feedscribe --entries entries.json unmark ID [ID ...]
    python -m feedscribe --entries entries.json unmark-all
    python -m feedscribe --entries entries.json summarize --system-prompt key-points
    python -m feedscribe prompts
    python -m feedscribe health
"""

import argparse
import sys
import time
from pathlib import Path
from queue import Empty, Queue

from feedscribe.ai import OllamaRequestClient
from feedscribe.config import (
    OLLAMA_MODEL_NAME,
    PARALLEL_MAX_WORKERS,
    REPORTS_DIR,
    SELECTION_FILE,
    get_system_instruction,
    load_system_prompts,
)
from feedscribe.exceptions import EmptySelectionError, EntrySourceError
from feedscribe.extraction import HtmlTextExtractor
from feedscribe.logging_config import close_debug_log, error, info
from feedscribe.parallel import ThreadPoolStrategy
from feedscribe.report import MarkdownReportPresenter
from feedscribe.selection import SelectionStore
from feedscribe.sources import load_entries
from feedscribe.summarization import BatchHandle, BatchOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feedscribe",
        description="Summarize marked feed entries with a local Ollama model"
    )
    parser.add_argument('--entries', type=Path, help="JSON export of feed entries")
    parser.add_argument('--selection-file', type=Path, default=SELECTION_FILE,
                        help=f"Where marks are kept (default: {SELECTION_FILE})")

    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('list', help="List entries and their marks")

    mark = commands.add_parser('mark', help="Mark entries for summarization")
    mark.add_argument('ids', nargs='+')

    unmark = commands.add_parser('unmark', help="Remove marks from entries")
    unmark.add_argument('ids', nargs='+')

    commands.add_parser('unmark-all', help="Remove every mark")

    summarize = commands.add_parser('summarize', help="Summarize the marked entries")
    summarize.add_argument('--model', default=OLLAMA_MODEL_NAME)
    instruction = summarize.add_mutually_exclusive_group()
    instruction.add_argument('--system-prompt', default=None,
                             help="Named system prompt from system_prompts.yaml")
    instruction.add_argument('--system-text', default=None,
                             help="Literal system instruction")
    summarize.add_argument('--workers', type=int, default=PARALLEL_MAX_WORKERS)
    summarize.add_argument('--output-dir', type=Path, default=REPORTS_DIR)
    summarize.add_argument('--timeout', type=float, default=None,
                           help="Stop waiting after this many seconds")
    summarize.add_argument('--echo', action='store_true', help="Print the report")

    commands.add_parser('prompts', help="List named system prompts")
    commands.add_parser('health', help="Check the Ollama connection")

    return parser


def format_notification(message_type: str, payload) -> str | None:
    """Console line for a batch notification, or None to stay quiet."""
    if message_type == 'progress':
        _, message = payload
        return message
    if message_type == 'skipped':
        return payload
    if message_type == 'request_failed':
        title, detail = payload
        return f'summary of "{title}" failed: {detail}'
    return None


def drain_notifications(ui_queue: Queue, timeout: float = 0.0) -> None:
    """Print queued notifications; wait up to timeout for the first one."""
    while True:
        try:
            message_type, payload = ui_queue.get(timeout=timeout) if timeout else ui_queue.get_nowait()
        except Empty:
            return
        timeout = 0.0
        line = format_notification(message_type, payload)
        if line:
            print(line)


def wait_for_batch(handle: BatchHandle, ui_queue: Queue, timeout: float | None) -> bool:
    """Stream notifications until the batch is done or timeout expires."""
    deadline = time.time() + timeout if timeout else None
    while not handle.done:
        if deadline and time.time() >= deadline:
            return False
        drain_notifications(ui_queue, timeout=0.2)
    drain_notifications(ui_queue)
    return True


def _load_store(args) -> SelectionStore:
    if not args.entries:
        raise EntrySourceError("--entries is required for this command")
    return SelectionStore(load_entries(args.entries), selection_file=args.selection_file)


def cmd_list(args) -> int:
    store = _load_store(args)
    for entry in store.entries:
        mark = "[x]" if store.is_selected(entry) else "[ ]"
        print(f"{mark} {entry.entry_id}  {entry.display_date:10}  {entry.feed_title}: {entry.title}")
    return 0


def cmd_mark(args, select: bool) -> int:
    store = _load_store(args)
    status = 0
    for entry_id in args.ids:
        try:
            entry = store.get(entry_id)
        except KeyError:
            error(f"[CLI] Unknown entry id: {entry_id}")
            print(f"unknown entry id: {entry_id}", file=sys.stderr)
            status = 1
            continue
        if select:
            store.select(entry)
        else:
            store.deselect(entry)
    return status


def cmd_unmark_all(args) -> int:
    store = _load_store(args)
    store.deselect_all()
    return 0


def cmd_summarize(args) -> int:
    store = _load_store(args)
    presenter = MarkdownReportPresenter(output_dir=args.output_dir, echo=args.echo)
    orchestrator = BatchOrchestrator(store, presenter)

    system_instruction = args.system_text or get_system_instruction(args.system_prompt)
    client = OllamaRequestClient(
        model_name=args.model,
        strategy=ThreadPoolStrategy(max_workers=max(1, args.workers))
    )

    try:
        handle = orchestrator.summarize_selected(client, HtmlTextExtractor(), system_instruction)
    except EmptySelectionError as e:
        print(f"error: {e}", file=sys.stderr)
        client.shutdown(wait=False)
        return 1

    print(f"Summarizing {handle.total} entries with {client.model_name}...")
    finished = wait_for_batch(handle, orchestrator.ui_queue, args.timeout)

    if not finished:
        # Requests already in flight still run to their own HTTP timeout
        client.shutdown(wait=False, cancel_futures=True)
        error(f"[CLI] Batch timed out after {args.timeout:g}s "
              f"({handle.completed}/{handle.total} completed); queued requests cancelled")
        print(f"gave up waiting after {args.timeout:g}s; "
              f"{handle.completed}/{handle.total} summaries completed", file=sys.stderr)
        return 2

    client.shutdown(wait=False)

    if presenter.last_report_path:
        print(f"Report: {presenter.last_report_path}")
    return 0


def cmd_prompts(args) -> int:
    for name, text in sorted(load_system_prompts().items()):
        first_line = text.strip().splitlines()[0] if text.strip() else ""
        print(f"{name:15} {first_line}")
    return 0


def cmd_health(args) -> int:
    status = OllamaRequestClient(strategy=ThreadPoolStrategy(max_workers=1)).health_check()
    print(f"Ollama at {status['api_base']}: {'connected' if status['connected'] else 'NOT reachable'}")
    if status['available_models']:
        print("Models: " + ", ".join(status['available_models']))
    return 0 if status['connected'] else 1


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the FeedScribe command line.
    """
    args = build_parser().parse_args(argv)
    info(f"[CLI] Command: {args.command}")

    handlers = {
        'list': cmd_list,
        'mark': lambda a: cmd_mark(a, select=True),
        'unmark': lambda a: cmd_mark(a, select=False),
        'unmark-all': cmd_unmark_all,
        'summarize': cmd_summarize,
        'prompts': cmd_prompts,
        'health': cmd_health,
    }

    try:
        return handlers[args.command](args)
    except EntrySourceError as e:
        error(f"[CLI] {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        close_debug_log()


if __name__ == "__main__":
    sys.exit(main())
