"""Search snippet extraction."""

from typing import Optional


def text_window(text: Optional[str], term: str, radius: int) -> str:
    """Return ``text`` around the first case-insensitive match of ``term``.

    The window extends ``radius`` characters on each side of the match and is
    clipped to the text bounds. Returns "" when there is no match.
    """
    if not text or not term:
        return ""
    index = text.lower().find(term.lower())
    if index < 0:
        return ""
    start = max(0, index - radius)
    end = min(len(text), index + len(term) + radius)
    return text[start:end].strip()
