"""Text helpers shared by the publisher and the mailbox builder."""

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace to single spaces and strip the ends.

    Example:
        >>> normalize_whitespace("  Backend \\t  Engineer ")
        'Backend Engineer'
    """
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Cut text to a fixed number of characters, appending suffix if cut.

    The cut is positional: no attempt is made to end on a word boundary.
    The suffix is not counted against max_length.

    Args:
        text: Text to truncate
        max_length: Number of characters kept from the start of text
        suffix: Appended only when text was actually shortened

    Returns:
        Original text if it fits, otherwise the first max_length characters plus suffix

    Example:
        >>> truncate_text("Build data pipelines", 10)
        'Build data...'
    """
    if max_length < 0:
        raise ValueError(f"max_length must be non-negative, got {max_length}")

    if not text or len(text) <= max_length:
        return text or ""

    return text[:max_length] + suffix


def capitalize_first(text: str) -> str:
    """Upper-case the first character and leave the rest untouched.

    Example:
        >>> capitalize_first("globex corp")
        'Globex corp'
    """
    if not text:
        return ""
    return text[0].upper() + text[1:]
