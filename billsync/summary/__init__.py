"""
Summary package for BillSync.

Summary generators for bill text and the helpers they rely on.
"""

from .generator import (
    BaseSummarizer,
    ExtractiveSummarizer,
    OpenAISummarizer,
    build_summarizer,
    split_sentences,
)
from .sanitize import sanitize_html
from .chunking import chunk_words

__all__ = [
    "BaseSummarizer",
    "ExtractiveSummarizer",
    "OpenAISummarizer",
    "build_summarizer",
    "split_sentences",
    "sanitize_html",
    "chunk_words",
]
