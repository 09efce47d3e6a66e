"""Plain-text excerpts of post bodies for listings and feeds."""
import re
from typing import Optional

from .chunks import SVG_PATTERN

HEADING_MARKERS = re.compile(r'#{1,6}\s+')
IMAGE = re.compile(r'!\[.*?\]\(.*?\)')
LINK = re.compile(r'\[([^\]]+)\]\([^\)]+\)')
FORMATTING_CHARS = re.compile(r'[*_`~]')
NEWLINES = re.compile(r'\n+')

ELLIPSIS = '…'
DEFAULT_EXCERPT_LENGTH = 160


def strip_markdown(markdown_text: str) -> str:
    """
    Reduce markdown to a single line of plain text.

    This is a blunt strip, not a parse: heading markers are removed wherever
    they occur (not only at line starts) and formatting characters are
    dropped individually rather than in pairs.
    """
    plain = SVG_PATTERN.sub('', markdown_text)
    plain = HEADING_MARKERS.sub('', plain)
    plain = IMAGE.sub('', plain)
    plain = LINK.sub(r'\1', plain)
    plain = FORMATTING_CHARS.sub('', plain)
    plain = NEWLINES.sub(' ', plain)
    return plain.strip()


def get_excerpt(markdown_text: Optional[str], max_len: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """
    Build a plain-text excerpt of at most ``max_len`` characters plus an ellipsis.

    Long text is cut at the last space at or before ``max_len``.  When there
    is no such space the cut lands at position 0 and only the ellipsis is
    returned.

    Args:
        markdown_text: Raw post body
        max_len: Maximum excerpt length before the ellipsis

    Returns:
        Plain text excerpt
    """
    if not markdown_text:
        return ''

    plain = strip_markdown(markdown_text)
    if len(plain) <= max_len:
        return plain

    cut = max(plain.rfind(' ', 0, max_len + 1), 0)
    return plain[:cut] + ELLIPSIS
