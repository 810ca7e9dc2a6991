"""
Selection Store for FeedScribe
Tracks which feed entries the user has marked for summarization.
"""

import json
import threading
from pathlib import Path

from feedscribe.logging_config import debug_log
from feedscribe.sources import FeedEntry


class SelectionStore:
    """
    Holds the selectable entries and a "selected" mark per entry.

    Marks are kept in selection order. All mutators are idempotent and
    thread-safe. When a selection_file is given, marks (entry ids only) are
    loaded from it on start and saved after each change, so marks made by
    one CLI invocation are seen by the next.
    """

    def __init__(self, entries: list[FeedEntry], selection_file: Path | None = None):
        """
        Initialize the store.

        Args:
            entries: Every selectable entry, in display order.
            selection_file: Optional JSON file for persisted marks.
        """
        self._entries = {entry.entry_id: entry for entry in entries}
        self.selection_file = Path(selection_file) if selection_file else None
        self._lock = threading.Lock()
        self._marked: dict[str, None] = {}  # Insertion-ordered set
        self._load_marks()

    def _load_marks(self) -> None:
        """Load persisted marks, ignoring ids of entries we don't have."""
        if not self.selection_file or not self.selection_file.exists():
            return
        try:
            with open(self.selection_file, encoding='utf-8') as f:
                data = json.load(f)
            ids = data.get('selected', [])
        except (json.JSONDecodeError, OSError, AttributeError) as e:
            # Corrupted file: start with no marks
            debug_log(f"[SELECTION] Could not read {self.selection_file}: {e}")
            return
        for entry_id in ids:
            if entry_id in self._entries:
                self._marked[entry_id] = None

    def _save_marks(self) -> None:
        """Save marks to JSON. Must be called while holding _lock."""
        if not self.selection_file:
            return
        try:
            self.selection_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.selection_file, 'w', encoding='utf-8') as f:
                json.dump({'selected': list(self._marked)}, f, indent=2)
        except OSError as e:
            # Log error but don't crash
            debug_log(f"[SELECTION] Could not save selection: {e}")

    @property
    def entries(self) -> list[FeedEntry]:
        """All selectable entries in display order."""
        return list(self._entries.values())

    def get(self, entry_id: str) -> FeedEntry:
        """
        Look up an entry by id.

        Raises:
            KeyError: If no entry has that id.
        """
        return self._entries[entry_id]

    def select(self, entry: FeedEntry) -> None:
        """Mark an entry. Marking a marked entry changes nothing."""
        with self._lock:
            if entry.entry_id in self._marked:
                return
            self._entries.setdefault(entry.entry_id, entry)
            self._marked[entry.entry_id] = None
            self._save_marks()

    def deselect(self, entry: FeedEntry) -> None:
        """Unmark an entry. Unmarking an unmarked entry changes nothing."""
        with self._lock:
            if entry.entry_id not in self._marked:
                return
            del self._marked[entry.entry_id]
            self._save_marks()

    def deselect_all(self) -> None:
        """Unmark every entry."""
        with self._lock:
            if not self._marked:
                return
            self._marked.clear()
            self._save_marks()

    def is_selected(self, entry: FeedEntry) -> bool:
        with self._lock:
            return entry.entry_id in self._marked

    def selected_items(self) -> list[FeedEntry]:
        """
        Snapshot of the marked entries, in selection order.

        The returned list is a copy: later marks do not change it.
        """
        with self._lock:
            return [self._entries[entry_id] for entry_id in self._marked]
