"""Inline markdown: escaping, code spans, bold, italic and links."""
import re

CODE_SPAN = re.compile(r'`([^`]+)`')
BOLD_STARS = re.compile(r'\*\*(.+?)\*\*')
BOLD_UNDERSCORES = re.compile(r'__(.+?)__')
ITALIC_STAR = re.compile(r'\*(.+?)\*')
ITALIC_UNDERSCORE = re.compile(r'_(.+?)_')
LINK = re.compile(r'\[([^\]]+)\]\(([^)]+)\)')

SAFE_HREF_PREFIXES = ('http', '/', 'mailto:')


def escape_html(text) -> str:
    """Escape ``&``, ``<``, ``>`` and ``"`` (ampersand first)."""
    return (
        str(text)
        .replace('&', '&amp;')
        .replace('<', '&lt;')
        .replace('>', '&gt;')
        .replace('"', '&quot;')
    )


def escape_attr(text) -> str:
    return str(text).replace('"', '&quot;')


def _render_link(match) -> str:
    text, href = match.group(1), match.group(2)
    # Unknown schemes (javascript:, data:, ...) are defanged
    safe_href = href if href.startswith(SAFE_HREF_PREFIXES) else '#'
    return f'<a href="{escape_attr(safe_href)}" target="_blank" rel="noopener">{text}</a>'


def render_inline(text: str) -> str:
    """
    Render the inline syntax of a single block of text.

    The text is HTML-escaped first, then each substitution runs once over the
    whole string in a fixed order: code spans, ``**bold**``, ``__bold__``,
    ``*italic*``, ``_italic_``, links. There is no nesting resolution beyond
    that order, and no backslash escapes.

    Args:
        text: Raw block text (placeholders already substituted)

    Returns:
        HTML fragment
    """
    html = escape_html(text)
    html = CODE_SPAN.sub(r'<code>\1</code>', html)
    html = BOLD_STARS.sub(r'<strong>\1</strong>', html)
    html = BOLD_UNDERSCORES.sub(r'<strong>\1</strong>', html)
    html = ITALIC_STAR.sub(r'<em>\1</em>', html)
    html = ITALIC_UNDERSCORE.sub(r'<em>\1</em>', html)
    html = LINK.sub(_render_link, html)
    return html
