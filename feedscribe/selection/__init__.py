"""
Entry selection for FeedScribe.

    from feedscribe.selection import SelectionStore
"""

from .selection_store import SelectionStore

__all__ = ['SelectionStore']
