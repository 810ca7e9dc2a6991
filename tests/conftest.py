"""
Shared fixtures for the FeedScribe test suite.

APPDATA is pointed at a temporary directory before any feedscribe module is
imported, so config's directory creation and the log files stay out of the
real home directory.
"""

import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from queue import Queue

import pytest

os.environ.setdefault('APPDATA', tempfile.mkdtemp(prefix='feedscribe-test-'))

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from feedscribe.report import ReportPresenter, ReportSink  # noqa: E402
from feedscribe.selection import SelectionStore  # noqa: E402
from feedscribe.sources import FeedEntry  # noqa: E402
from feedscribe.summarization import RequestResult  # noqa: E402


def make_entry(entry_id: str, content: str = "<p>Some article text.</p>", **kwargs) -> FeedEntry:
    """Build a FeedEntry with sensible defaults."""
    defaults = {
        'title': f"Title {entry_id}",
        'feed_title': "Example Feed",
        'published': datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc),
        'url': f"https://example.org/{entry_id}",
        'content_type': "html",
    }
    defaults.update(kwargs)
    return FeedEntry(entry_id=entry_id, content=content, **defaults)


def success(text: str) -> RequestResult:
    return RequestResult(success=True, text=text, model_name="fake-model")


def failure(detail: str = "Ollama returned status 500: boom") -> RequestResult:
    return RequestResult.failure(detail, model_name="fake-model")


class FakeRequestClient:
    """
    Request client that holds every submission until the test resolves it.

    Resolving in any order simulates any arrival order.
    """

    model_name = "fake-model"

    def __init__(self):
        self.submissions = []

    def submit(self, text, system_instruction, on_complete):
        self.submissions.append((text, system_instruction, on_complete))

    @property
    def texts(self) -> list[str]:
        return [text for text, _, _ in self.submissions]

    def resolve(self, index: int, result: RequestResult) -> None:
        self.submissions[index][2](result)


class RecordingPresenter(ReportPresenter):
    """Presenter that writes to the sink and records every call."""

    def __init__(self):
        self.calls = []
        self.shown = []  # (text, point) at each show()

    def clear(self, sink):
        self.calls.append('clear')
        sink.erase()

    def write_header(self, sink, metadata):
        self.calls.append('write_header')
        sink.insert(f"# header {metadata.model_name} {metadata.entry_count}\n")

    def append(self, sink, block):
        self.calls.append('append')
        sink.insert(block)

    def show(self, sink):
        self.calls.append('show')
        self.shown.append((sink.text, sink.point))

    @property
    def show_count(self) -> int:
        return len(self.shown)


def drain(queue: Queue) -> list:
    """All messages currently in the queue."""
    messages = []
    while not queue.empty():
        messages.append(queue.get_nowait())
    return messages


def messages_of_type(messages: list, message_type: str) -> list:
    return [payload for kind, payload in messages if kind == message_type]


@pytest.fixture
def fake_client():
    return FakeRequestClient()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def ui_queue():
    return Queue()


@pytest.fixture
def sink():
    return ReportSink("test-summaries")


@pytest.fixture
def entries():
    return [make_entry("a"), make_entry("b"), make_entry("c")]


@pytest.fixture
def store(entries):
    store = SelectionStore(entries)
    for entry in entries:
        store.select(entry)
    return store
