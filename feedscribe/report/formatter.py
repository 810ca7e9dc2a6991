"""
Report Formatter for FeedScribe.

Formats the report header and one block per summarized entry as Markdown.

Entry block layout:

    ## <title>
    - Feed: <feed title>
    - Date: <YYYY-MM-DD>
    - URL: <url>

    <summary text>

    ---
"""

from dataclasses import dataclass, field
from datetime import datetime

from feedscribe.sources import FeedEntry

SEPARATOR = "---"


@dataclass(frozen=True)
class ReportMetadata:
    """
    Header data written at the top of every report.

    Attributes:
        model_name: Model identity used for the batch.
        entry_count: Number of entries in the batch.
        generated_at: When the batch started.
    """
    model_name: str
    entry_count: int
    generated_at: datetime = field(default_factory=datetime.now)


def format_report_header(metadata: ReportMetadata) -> str:
    """
    Format the report header.

    Args:
        metadata: Timestamp, model and entry count for the batch.

    Returns:
        Markdown header ending with a blank line.
    """
    return (
        "# Feed Summaries\n\n"
        f"- Generated: {metadata.generated_at.strftime('%Y-%m-%d %H:%M')}\n"
        f"- Model: {metadata.model_name}\n"
        f"- Entries: {metadata.entry_count}\n\n"
    )


def format_entry_block(entry: FeedEntry, summary: str) -> str:
    """
    Format one summarized entry: heading, metadata lines, summary, separator.

    Metadata lines with no value are left out. The summary is inserted as
    returned by the model apart from surrounding whitespace.
    """
    lines = [f"## {entry.title}"]
    if entry.feed_title:
        lines.append(f"- Feed: {entry.feed_title}")
    if entry.published is not None:
        lines.append(f"- Date: {entry.display_date}")
    if entry.url:
        lines.append(f"- URL: {entry.url}")

    return "\n".join(lines) + f"\n\n{summary.strip()}\n\n{SEPARATOR}\n\n"
