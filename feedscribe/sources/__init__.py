"""
Feed entry sources for FeedScribe.

    from feedscribe.sources import FeedEntry, load_entries

    entries = load_entries("entries.json")
"""

from .feed_entry import FeedEntry, entry_from_dict, load_entries

__all__ = ['FeedEntry', 'entry_from_dict', 'load_entries']
