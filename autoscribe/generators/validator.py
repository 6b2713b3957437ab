"""Structural check for generated comment blocks."""

BLOCK_OPEN = "/**"
BLOCK_CLOSE = "*/"


def validate_comment_block(text: str) -> bool:
    """Check that text is shaped like a documentation comment block.

    Only the delimiters are checked, after trimming surrounding
    whitespace; the contents of the block are not parsed.

    Args:
        text: Candidate comment block.

    Returns:
        True if the trimmed text starts with ``/**`` and ends with ``*/``.
    """
    stripped = text.strip()
    return stripped.startswith(BLOCK_OPEN) and stripped.endswith(BLOCK_CLOSE)
