"""
Line-oriented markdown parser for post bodies.

The parser walks the body with a single forward cursor.  At each position the
block rules below are tried in priority order and the first one whose
predicate accepts the current line consumes as many lines as it needs,
returning the new cursor and the rendered HTML fragment.

Supported blocks: fenced code, horizontal rules, ATX headings, blockquotes,
unordered / ordered lists, bare SVG placeholder lines and paragraphs.
Embedded ``<svg>`` markup and ``$math$`` are protected by the chunk
extractor (see :mod:`blog_engine.chunks`) before any of this runs.
"""
import logging
import re
from typing import Callable, List, NamedTuple, Optional, Tuple

from .chunks import extract_chunks, restore_chunks
from .inline import escape_html, render_inline

logger = logging.getLogger(__name__)

FENCE = '```'
RULE_PATTERN = re.compile(r'^(\*\*\*|---|___)\s*$')
HEADING_PATTERN = re.compile(r'^(#{1,6})\s+([^\r\n]*)')
QUOTE_PREFIX = '> '
BULLET_PATTERN = re.compile(r'^[-*+]\s')
NUMBERED_PATTERN = re.compile(r'^[0-9]+\.\s')
SVG_LINE_PATTERN = re.compile(r'^%%SVG\d+%%$')

# (next cursor, html fragment or None when the rule emits nothing)
Consumed = Tuple[int, Optional[str]]


class BlockRule(NamedTuple):
    name: str
    matches: Callable[[str], bool]
    consume: Callable[[List[str], int], Consumed]


# ------------------------------------------------------------------
# Predicates
# ------------------------------------------------------------------

def _is_fence(line: str) -> bool:
    return line.startswith(FENCE)


def _is_rule(line: str) -> bool:
    return RULE_PATTERN.match(line) is not None


def _is_heading(line: str) -> bool:
    return HEADING_PATTERN.match(line) is not None


def _is_quote(line: str) -> bool:
    return line.startswith(QUOTE_PREFIX)


def _is_bullet(line: str) -> bool:
    return BULLET_PATTERN.match(line) is not None


def _is_numbered(line: str) -> bool:
    return NUMBERED_PATTERN.match(line) is not None


def _is_svg_line(line: str) -> bool:
    return SVG_LINE_PATTERN.match(line.strip()) is not None


def _is_blank(line: str) -> bool:
    return line.strip() == ''


# ------------------------------------------------------------------
# Consumers
# ------------------------------------------------------------------

def _consume_fence(lines: List[str], i: int) -> Consumed:
    lang = lines[i][len(FENCE):].strip()
    code_lines = []
    i += 1
    while i < len(lines) and not lines[i].startswith(FENCE):
        code_lines.append(escape_html(lines[i]))
        i += 1
    # Skip the closing fence; an unterminated fence simply runs to the end
    i += 1
    class_attr = f' class="language-{escape_html(lang)}"' if lang else ''
    code = '\n'.join(code_lines)
    return i, f'<pre><code{class_attr}>{code}</code></pre>'


def _consume_rule(lines: List[str], i: int) -> Consumed:
    return i + 1, '<hr>'


def _consume_heading(lines: List[str], i: int) -> Consumed:
    match = HEADING_PATTERN.match(lines[i])
    level = len(match.group(1))
    return i + 1, f'<h{level}>{render_inline(match.group(2))}</h{level}>'


def _consume_quote(lines: List[str], i: int) -> Consumed:
    quoted = []
    while i < len(lines) and _is_quote(lines[i]):
        quoted.append(lines[i][len(QUOTE_PREFIX):])
        i += 1
    body = render_inline('\n'.join(quoted))
    return i, f'<blockquote>{body}</blockquote>'


def _consume_bullets(lines: List[str], i: int) -> Consumed:
    items = []
    while i < len(lines) and _is_bullet(lines[i]):
        items.append(f'<li>{render_inline(lines[i][2:])}</li>')
        i += 1
    return i, f'<ul>{"".join(items)}</ul>'


def _consume_numbered(lines: List[str], i: int) -> Consumed:
    items = []
    while i < len(lines) and _is_numbered(lines[i]):
        items.append(f'<li>{render_inline(NUMBERED_PATTERN.sub("", lines[i], count=1))}</li>')
        i += 1
    return i, f'<ol>{"".join(items)}</ol>'


def _consume_svg_line(lines: List[str], i: int) -> Consumed:
    # Left unwrapped so the restored <svg> is not nested inside a <p>
    return i + 1, lines[i].strip()


def _consume_blank(lines: List[str], i: int) -> Consumed:
    return i + 1, None


def _starts_block(line: str) -> bool:
    return _is_blank(line) or any(rule.matches(line) for rule in STARTER_RULES)


def _consume_paragraph(lines: List[str], i: int) -> Consumed:
    # The first line is always taken, even if it merely looks like a starter
    # (e.g. "####### seven hashes"), so the cursor always advances.
    para_lines = [lines[i]]
    i += 1
    while i < len(lines) and not _starts_block(lines[i]):
        para_lines.append(lines[i])
        i += 1
    return i, f'<p>{render_inline(" ".join(para_lines))}</p>'


STARTER_RULES: Tuple[BlockRule, ...] = (
    BlockRule('fence', _is_fence, _consume_fence),
    BlockRule('rule', _is_rule, _consume_rule),
    BlockRule('heading', _is_heading, _consume_heading),
    BlockRule('blockquote', _is_quote, _consume_quote),
    BlockRule('bullets', _is_bullet, _consume_bullets),
    BlockRule('numbered', _is_numbered, _consume_numbered),
    BlockRule('svg', _is_svg_line, _consume_svg_line),
)

BLOCK_RULES: Tuple[BlockRule, ...] = STARTER_RULES + (
    BlockRule('blank', _is_blank, _consume_blank),
    BlockRule('paragraph', lambda line: True, _consume_paragraph),
)


def parse_blocks(markdown_text: str) -> List[str]:
    """
    Split placeholder-substituted markdown into rendered HTML blocks.

    Args:
        markdown_text: Markdown with SVG / math already swapped for placeholders

    Returns:
        List of HTML fragments in document order
    """
    lines = markdown_text.split('\n')
    out: List[str] = []
    i = 0

    while i < len(lines):
        rule = next(r for r in BLOCK_RULES if r.matches(lines[i]))
        i, fragment = rule.consume(lines, i)
        if fragment is not None:
            out.append(fragment)

    return out


def render_markdown(markdown_text: Optional[str]) -> str:
    """
    Render a post body to an HTML fragment.

    The output is only HTML-escaped, not sanitised; embedded SVG and math
    are passed through verbatim.

    Args:
        markdown_text: Raw markdown content (``None`` or empty gives ``''``)

    Returns:
        HTML string
    """
    if not markdown_text:
        return ''

    processed, chunks = extract_chunks(markdown_text)
    blocks = parse_blocks(processed)
    logger.debug(f"Parsed {len(blocks)} blocks")

    return restore_chunks('\n'.join(blocks), chunks)
