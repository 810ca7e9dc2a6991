"""
Exceptions raised by FeedScribe.

Per-entry problems (empty content, failed requests, a closed report buffer)
are not exceptions: they are reported on the notification queue and the
batch carries on. Only conditions that stop an operation before it starts
are raised.
"""


class FeedScribeError(Exception):
    """Base class for FeedScribe errors."""


class EmptySelectionError(FeedScribeError, ValueError):
    """Raised when a batch is requested with no entries selected."""

    def __init__(self, message: str = "No entries selected"):
        super().__init__(message)


class EntrySourceError(FeedScribeError):
    """Raised when the feed entry export cannot be read or parsed."""
