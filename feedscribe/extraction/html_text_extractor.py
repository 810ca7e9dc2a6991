"""
HTML Text Extraction Module

Turns feed entry bodies (usually HTML fragments) into plain text suitable
for a summarization prompt.

Extraction is best effort: malformed markup never raises, it just yields
whatever readable text could be recovered. An entry with nothing readable
yields an empty string, which the batch orchestrator treats as "skip".
"""

import re
from html import unescape
from html.parser import HTMLParser

from feedscribe.config import EXTRACT_MAX_CHARS
from feedscribe.logging_config import debug_log, warning
from feedscribe.sources import FeedEntry

_TAG_PATTERN = re.compile(r"<[a-zA-Z/!][^>]*>")


class _HTMLStripper(HTMLParser):
    """HTML tag stripper that keeps readable text and block structure."""

    _BLOCK_TAGS = {
        "address", "article", "aside", "blockquote", "br", "dd", "div", "dl",
        "dt", "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5",
        "h6", "header", "hr", "li", "main", "ol", "p", "pre", "section",
        "table", "tr", "ul",
    }
    _SKIP_TAGS = {"script", "style", "noscript", "template", "head"}

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._pieces: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in self._SKIP_TAGS:
            self._skip_depth += 1
        elif tag in self._BLOCK_TAGS:
            self._pieces.append("\n")
        elif tag == "img":
            alt = dict(attrs).get("alt")
            if alt:
                self._pieces.append(f" {alt} ")

    def handle_endtag(self, tag: str) -> None:
        if tag in self._SKIP_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
        elif tag in self._BLOCK_TAGS:
            self._pieces.append("\n")

    def handle_data(self, data: str) -> None:
        if not self._skip_depth:
            self._pieces.append(data)

    def get_text(self) -> str:
        return "".join(self._pieces)


def normalize_whitespace(text: str) -> str:
    """
    Collapse runs of spaces within lines and runs of blank lines.

    Example:
        >>> normalize_whitespace("a   b\\n\\n\\n\\nc ")
        'a b\\n\\nc'
    """
    lines = [re.sub(r"[ \t\xa0]+", " ", line).strip() for line in text.splitlines()]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def html_to_text(html: str) -> str:
    """
    Convert an HTML fragment to plain text.

    Falls back to a regex tag strip if the parser gives up.
    """
    if not html:
        return ""
    stripper = _HTMLStripper()
    try:
        stripper.feed(html)
        stripper.close()
        text = stripper.get_text()
    except (AssertionError, ValueError) as e:
        # HTMLParser raises on some pathological markup
        warning(f"[EXTRACT] HTML parser failed ({e}); falling back to tag strip")
        text = unescape(_TAG_PATTERN.sub(" ", html))
    return normalize_whitespace(text)


class HtmlTextExtractor:
    """
    Extracts plain text from feed entries.

    Stateless after init and safe to share between threads.

    Attributes:
        max_chars: Characters kept per entry (0 keeps everything).
    """

    def __init__(self, max_chars: int = EXTRACT_MAX_CHARS):
        self.max_chars = max_chars

    def extract(self, entry: FeedEntry) -> str:
        """
        Return the entry's readable text, or "" when there is none.

        Args:
            entry: The feed entry to extract.

        Returns:
            Plain text, truncated to max_chars at a word boundary.
        """
        content = entry.content or ""
        if self._is_html(entry, content):
            text = html_to_text(content)
        else:
            text = normalize_whitespace(content)

        if self.max_chars and len(text) > self.max_chars:
            cut = text.rfind(" ", 0, self.max_chars)
            text = text[:cut if cut > 0 else self.max_chars].rstrip()
            debug_log(f"[EXTRACT] Truncated '{entry.title}' to {len(text)} chars")

        return text

    @staticmethod
    def _is_html(entry: FeedEntry, content: str) -> bool:
        if entry.content_type:
            return entry.content_type in ("html", "text/html", "xhtml")
        return bool(_TAG_PATTERN.search(content))
