"""
Extraction and restoration of verbatim chunks (embedded SVG and math).

Chunks are swapped for ``%%SVG<n>%%`` / ``%%MATH<n>%%`` placeholders before
the block parser runs, so their contents are never escaped or re-tokenised,
and are put back once the HTML has been assembled.

Authored text that already looks like a placeholder is set aside first as a
``%%LITERAL<n>%%`` token and restored last, so it comes back unchanged
instead of resolving to somebody else's chunk.
"""
import logging
import re
from typing import List, Tuple

from .models import ExtractedChunks

logger = logging.getLogger(__name__)

SVG_PATTERN = re.compile(r'<svg[\s\S]*?</svg>', re.IGNORECASE)
MATH_PATTERN = re.compile(r'\$\$[\s\S]+?\$\$|\$[^$\n]+?\$')
AUTHORED_TOKEN_PATTERN = re.compile(r'%%(?:SVG|MATH|LITERAL)\d+%%')

SVG_TOKEN_PATTERN = re.compile(r'%%SVG(\d+)%%')
MATH_TOKEN_PATTERN = re.compile(r'%%MATH(\d+)%%')
LITERAL_TOKEN_PATTERN = re.compile(r'%%LITERAL(\d+)%%')


class PlaceholderError(LookupError):
    """A placeholder token points at a chunk that was never extracted."""


def _substitute(pattern: re.Pattern, text: str, kind: str, sink: List[str]) -> str:
    def _stash(match):
        sink.append(match.group(0))
        return f'%%{kind}{len(sink) - 1}%%'

    return pattern.sub(_stash, text)


def extract_chunks(markdown_text: str) -> Tuple[str, ExtractedChunks]:
    """
    Pull SVG elements and math expressions out of *markdown_text*.

    SVG goes first so that dollar signs inside SVG attributes are never
    mistaken for math delimiters.

    Args:
        markdown_text: Raw post body

    Returns:
        Tuple of (text with placeholders, extracted chunks)
    """
    chunks = ExtractedChunks()
    processed = _substitute(AUTHORED_TOKEN_PATTERN, markdown_text, 'LITERAL', chunks.literal)
    processed = _substitute(SVG_PATTERN, processed, 'SVG', chunks.svg)
    processed = _substitute(MATH_PATTERN, processed, 'MATH', chunks.math)

    if chunks:
        logger.debug(f"Extracted {len(chunks.svg)} SVG and {len(chunks.math)} math chunks")
    return processed, chunks


def _restore(pattern: re.Pattern, html: str, kind: str, source: List[str]) -> str:
    def _lookup(match):
        index = int(match.group(1))
        if index >= len(source):
            raise PlaceholderError(
                f"%%{kind}{index}%% has no matching chunk ({len(source)} extracted)"
            )
        return source[index]

    return pattern.sub(_lookup, html)


def restore_chunks(html: str, chunks: ExtractedChunks) -> str:
    """
    Put extracted chunks back in place of their placeholder tokens.

    Must run after every escaping and inline pass so restored markup is
    never touched.  Literal tokens go last since SVG and math chunks may
    contain them.

    Raises:
        PlaceholderError: If a token index has no corresponding chunk
    """
    html = _restore(SVG_TOKEN_PATTERN, html, 'SVG', chunks.svg)
    html = _restore(MATH_TOKEN_PATTERN, html, 'MATH', chunks.math)
    return _restore(LITERAL_TOKEN_PATTERN, html, 'LITERAL', chunks.literal)
