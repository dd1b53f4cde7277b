"""
Diff package for BillSync.

Edit-script computation between bill versions and its HTML rendering.
"""

from .engine import Granularity, compute_diff, diff_tokens, coalesce, edit_distance, tokenize
from .render import render_html

__all__ = [
    "Granularity",
    "compute_diff",
    "diff_tokens",
    "coalesce",
    "edit_distance",
    "tokenize",
    "render_html",
]
