"""Word-based chunking for texts that exceed a model's input budget."""

from typing import List


def chunk_words(text: str, max_words: int = 900) -> List[str]:
    """
    Split text into consecutive chunks of at most ``max_words`` words.

    Whitespace between words is normalized to single spaces inside a chunk.
    Returns an empty list for blank text.
    """
    if max_words < 1:
        raise ValueError("max_words must be at least 1")

    words = text.split()
    return [
        " ".join(words[start:start + max_words])
        for start in range(0, len(words), max_words)
    ]
