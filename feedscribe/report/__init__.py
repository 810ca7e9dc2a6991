"""
Report output for FeedScribe.

    from feedscribe.report import MarkdownReportPresenter, ReportSink

    presenter = MarkdownReportPresenter(echo=True)
    sink = ReportSink("feed-summaries")
"""

from .formatter import SEPARATOR, ReportMetadata, format_entry_block, format_report_header
from .presenter import MarkdownReportPresenter, ReportPresenter
from .report_sink import ReportSink

__all__ = [
    'ReportMetadata',
    'ReportSink',
    'ReportPresenter',
    'MarkdownReportPresenter',
    'format_entry_block',
    'format_report_header',
    'SEPARATOR',
]
