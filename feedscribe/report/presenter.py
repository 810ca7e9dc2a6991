"""
Report Presenter for FeedScribe.

The presenter owns how a report buffer is written to and displayed. The
batch orchestrator only calls the four operations of ReportPresenter, and
only calls show() once the whole batch has completed.

Every write checks that the sink is still live; writing to a destroyed
sink is a silent no-op, never an error.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from feedscribe.config import REPORTS_DIR
from feedscribe.logging_config import debug_log, info

from .formatter import ReportMetadata, format_report_header
from .report_sink import ReportSink


class ReportPresenter(ABC):
    """
    Contract between the batch orchestrator and the report display.
    """

    @abstractmethod
    def clear(self, sink: ReportSink) -> None:
        """Empty the sink before a new batch writes into it."""

    @abstractmethod
    def write_header(self, sink: ReportSink, metadata: ReportMetadata) -> None:
        """Write the report header (timestamp, model identity)."""

    @abstractmethod
    def append(self, sink: ReportSink, block: str) -> None:
        """Append one formatted entry block."""

    @abstractmethod
    def show(self, sink: ReportSink) -> None:
        """Display the finished report. Called once per batch."""


class MarkdownReportPresenter(ReportPresenter):
    """
    Writes reports as Markdown files and optionally echoes them to stdout.

    Attributes:
        output_dir: Directory for report files.
        echo: Print the report to stdout on show().
        last_report_path: Path written by the most recent show().
    """

    def __init__(self, output_dir: Path = REPORTS_DIR, echo: bool = False):
        self.output_dir = Path(output_dir)
        self.echo = echo
        self.last_report_path: Path | None = None

    def clear(self, sink: ReportSink) -> None:
        sink.erase()

    def write_header(self, sink: ReportSink, metadata: ReportMetadata) -> None:
        sink.insert(format_report_header(metadata))

    def append(self, sink: ReportSink, block: str) -> None:
        if not sink.insert(block):
            debug_log(f"[REPORT] Sink '{sink.name}' is gone; block dropped")

    def show(self, sink: ReportSink) -> None:
        """
        Save the buffer to <output_dir>/<sink name>-<timestamp>.md.

        Does nothing if the sink was destroyed.
        """
        if not sink.is_live:
            debug_log(f"[REPORT] Sink '{sink.name}' is gone; nothing to show")
            return

        text = sink.text
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        report_path = self.output_dir / f"{sink.name}-{timestamp}.md"
        with open(report_path, 'w', encoding='utf-8') as f:
            f.write(text)

        self.last_report_path = report_path
        info(f"[REPORT] Report saved to {report_path}")

        if self.echo:
            print(text)
