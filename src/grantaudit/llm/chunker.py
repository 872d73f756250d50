"""Line-aligned text chunking for bounded-size extraction requests."""
from typing import List, Tuple


def chunk(text: str, max_chunk_chars: int) -> List[str]:
    """
    Split text into chunks of at most `max_chunk_chars`, on line boundaries only.

    ``"".join(chunk(text, n)) == text`` always holds. A single line longer than
    the limit becomes its own (oversized) chunk; it is never cut, since half a
    statement row is worse than an oversized request.
    """
    if max_chunk_chars < 1:
        raise ValueError("max_chunk_chars must be positive")

    chunks: List[str] = []
    current: List[str] = []
    current_len = 0

    for line in text.splitlines(keepends=True):
        if current and current_len + len(line) > max_chunk_chars:
            chunks.append("".join(current))
            current = []
            current_len = 0
        current.append(line)
        current_len += len(line)

    if current:
        chunks.append("".join(current))

    return chunks


def split_in_half(text: str) -> Tuple[str, str]:
    """
    Bisect a chunk at the line boundary nearest its character midpoint.

    Both halves are non-empty unless the chunk is a single line, in which case
    the second half is empty.
    """
    lines = text.splitlines(keepends=True)
    if len(lines) <= 1:
        return text, ""

    midpoint = len(text) / 2
    best_index = 1
    best_distance = None
    offset = 0
    for index, line in enumerate(lines[:-1], start=1):
        offset += len(line)
        distance = abs(offset - midpoint)
        if best_distance is None or distance < best_distance:
            best_index = index
            best_distance = distance

    return "".join(lines[:best_index]), "".join(lines[best_index:])
