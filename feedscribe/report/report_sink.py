"""
Report buffer that batch results are written into.

A ReportSink is the destination a batch writes its header and summaries
into before the presenter displays it. The user may close it while a
batch is still running; after destroy() every write is a no-op and the
batch simply has nowhere to show its report.
"""

import threading


class ReportSink:
    """
    Named, mutable text buffer with a cursor and a liveness flag.

    Thread-safe: completion callbacks insert from worker threads.

    Attributes:
        name: Buffer name, also used for the report file name.
        point: Cursor offset into the text (0 = start of buffer).
    """

    def __init__(self, name: str = "feed-summaries"):
        self.name = name
        self.point = 0
        self._chunks: list[str] = []
        self._live = True
        self._lock = threading.Lock()

    @property
    def is_live(self) -> bool:
        with self._lock:
            return self._live

    @property
    def text(self) -> str:
        with self._lock:
            return "".join(self._chunks)

    def insert(self, text: str) -> bool:
        """
        Append text at the end of the buffer and move point after it.

        Returns:
            False (and writes nothing) if the sink was destroyed.
        """
        with self._lock:
            if not self._live:
                return False
            self._chunks.append(text)
            self.point = sum(len(chunk) for chunk in self._chunks)
            return True

    def erase(self) -> bool:
        """Empty the buffer. Returns False if the sink was destroyed."""
        with self._lock:
            if not self._live:
                return False
            self._chunks = []
            self.point = 0
            return True

    def goto_start(self) -> None:
        with self._lock:
            self.point = 0

    def destroy(self) -> None:
        """Close the buffer. Idempotent."""
        with self._lock:
            self._live = False
            self._chunks = []
            self.point = 0
