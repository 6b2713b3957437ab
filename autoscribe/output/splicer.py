"""Insertion of generated comment blocks into source text.

Blocks are spliced in ascending order of their span's original start
offset. A running offset accumulates the length of everything inserted
so far, which turns each original offset into a position in the text
being built.
"""

import logging
from typing import Iterable

from autoscribe.parsers.structure import Span

logger = logging.getLogger(__name__)

FILE_DOC_SEPARATOR = "\n\n"
BLOCK_SEPARATOR = "\n"


def splice_documentation(
    text: str,
    file_doc: str,
    pairs: Iterable[tuple[Span, str]],
) -> str:
    """Insert a file-level block and one block per span into text.

    The file block and two newlines are prepended. Each span's block,
    followed by one newline, is inserted immediately before the span.
    Block i therefore starts at::

        start_offset_i + len(file_doc) + 2 + sum(len(block_j) + 1 for j < i)

    Args:
        text: The original source text the spans were extracted from.
        file_doc: Comment block describing the whole file.
        pairs: (span, block) pairs. They are spliced in ascending
            span.start_offset order.

    Returns:
        The documented source text.

    Raises:
        ValueError: If a span offset lies outside the original text.
    """
    ordered = sorted(pairs, key=lambda pair: pair[0].start_offset)

    result = file_doc + FILE_DOC_SEPARATOR + text
    offset = len(file_doc) + len(FILE_DOC_SEPARATOR)

    for span, block in ordered:
        if not 0 <= span.start_offset <= len(text):
            raise ValueError(
                f"Span {span.name!r} starts at {span.start_offset}, "
                f"outside text of length {len(text)}"
            )
        position = span.start_offset + offset
        insertion = block + BLOCK_SEPARATOR
        result = result[:position] + insertion + result[position:]
        offset += len(insertion)

    logger.debug("Spliced %d blocks plus file documentation", len(ordered))
    return result
