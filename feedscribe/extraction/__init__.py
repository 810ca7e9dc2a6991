"""
Content extraction for FeedScribe.
Turns feed entry bodies into plain text for summarization.
"""

from .html_text_extractor import HtmlTextExtractor, html_to_text, normalize_whitespace

__all__ = ['HtmlTextExtractor', 'html_to_text', 'normalize_whitespace']
