"""
Feed entry model and JSON export loader.

A FeedEntry is one article from a feed reader export. Entries are frozen:
a batch run shares them between the orchestrator and every request
callback without copying.

Export format (a list, or an object with an "entries" list):

    [
      {
        "id": "https://example.org/posts/42",
        "title": "Release notes",
        "feed_title": "Example Blog",
        "published": "2026-10-17T09:30:00+00:00",
        "url": "https://example.org/posts/42",
        "content": "<p>...</p>",
        "content_type": "html"
      }
    ]

"feed" / "link" / "date" are accepted as aliases, and "published" may be an
ISO 8601 string or a Unix timestamp.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from feedscribe.exceptions import EntrySourceError
from feedscribe.logging_config import debug_log, warning


@dataclass(frozen=True)
class FeedEntry:
    """
    A selectable feed entry.

    Attributes:
        entry_id: Unique identity within the export.
        title: Entry title.
        feed_title: Source label (the feed's name).
        published: Publication timestamp, if known.
        url: Link to the original article.
        content: Raw entry body (HTML or plain text).
        content_type: "html" or "text"; empty means "guess from content".
    """
    entry_id: str
    title: str
    feed_title: str = ""
    published: datetime | None = None
    url: str = ""
    content: str = ""
    content_type: str = ""

    @property
    def display_date(self) -> str:
        """Publication date as YYYY-MM-DD, or empty string."""
        if self.published is None:
            return ""
        return self.published.strftime("%Y-%m-%d")


def _parse_published(value) -> datetime | None:
    """Parse an ISO 8601 string or Unix timestamp; None when unparseable."""
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        # fromisoformat() before 3.11 rejects a trailing "Z"
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        warning(f"[SOURCES] Unparseable date {value!r}; leaving it empty")
        return None


def entry_from_dict(data: dict) -> FeedEntry:
    """
    Build a FeedEntry from one export record.

    Raises:
        EntrySourceError: If the record has no id.
    """
    entry_id = data.get('id') or data.get('entry_id')
    if not entry_id:
        raise EntrySourceError(f"Entry without id: {str(data)[:80]}")

    return FeedEntry(
        entry_id=str(entry_id),
        title=data.get('title') or "(untitled)",
        feed_title=data.get('feed_title') or data.get('feed') or "",
        published=_parse_published(data.get('published', data.get('date'))),
        url=data.get('url') or data.get('link') or "",
        content=data.get('content') or "",
        content_type=(data.get('content_type') or "").lower(),
    )


def load_entries(path: Path | str) -> list[FeedEntry]:
    """
    Load feed entries from a JSON export file.

    Args:
        path: Path to the export.

    Returns:
        Entries in file order.

    Raises:
        EntrySourceError: If the file is missing, is not valid JSON, or a
                          record is malformed.
    """
    path = Path(path)
    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise EntrySourceError(f"Entry export not found: {path}") from e
    except json.JSONDecodeError as e:
        raise EntrySourceError(f"Entry export is not valid JSON: {path} ({e})") from e

    records = data.get('entries', []) if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise EntrySourceError(f"Expected a list of entries in {path}")

    entries = []
    seen = set()
    for record in records:
        if not isinstance(record, dict):
            raise EntrySourceError(f"Expected an object per entry in {path}")
        entry = entry_from_dict(record)
        if entry.entry_id in seen:
            warning(f"[SOURCES] Duplicate entry id {entry.entry_id!r}; keeping the first")
            continue
        seen.add(entry.entry_id)
        entries.append(entry)

    debug_log(f"[SOURCES] Loaded {len(entries)} entries from {path}")
    return entries
