"""
Text chunking for embedding.

Splits arbitrary text into bounded-size pieces, preferring paragraph
breaks, then line breaks, and falling back to a hard cut.
"""

DEFAULT_CHUNK_SIZE = 1000


def _find_split(text: str, max_chars: int) -> int:
    """Return the cut offset for text longer than max_chars."""
    # Boundary must start at or before max_chars; offset 0 would never progress
    for separator in ("\n\n", "\n"):
        index = text.rfind(separator, 0, max_chars + len(separator))
        if index > 0:
            return index
    return max_chars


def chunk_text(text: str, max_chars: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """
    Split text into chunks of at most max_chars characters.

    Each chunk and the remaining tail are stripped of surrounding
    whitespace at every cut. When no newline is found within the
    window the text is cut at exactly max_chars, splitting a word
    if necessary.

    Args:
        text: Raw text to split
        max_chars: Maximum chunk length in characters

    Returns:
        Chunks in source order; empty for empty or whitespace-only text
    """
    if max_chars < 1:
        raise ValueError(f"max_chars must be positive, got {max_chars}")

    chunks = []
    remaining = text.strip()

    while remaining:
        if len(remaining) <= max_chars:
            chunks.append(remaining)
            break

        split = _find_split(remaining, max_chars)
        chunk = remaining[:split].strip()
        if chunk:
            chunks.append(chunk)
        remaining = remaining[split:].strip()

    return chunks
