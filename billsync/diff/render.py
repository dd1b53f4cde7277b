"""
HTML rendering of edit scripts.

Every op's text is escaped before it is wrapped, so bill text can never
inject markup into the page. Output is a pure function of the ops.
"""

from html import escape
from typing import Iterable

from ..models.documents import DiffOp, OpKind


TAGS = {
    OpKind.INSERT: ('<ins class="diff-insert">', "</ins>"),
    OpKind.DELETE: ('<del class="diff-delete">', "</del>"),
    OpKind.EQUAL: ('<span class="diff-equal">', "</span>"),
}


def render_html(ops: Iterable[DiffOp]) -> str:
    """
    Render ops as display-ready markup.

    Example:
        >>> render_html([DiffOp(kind=OpKind.INSERT, text="<b>")])
        '<ins class="diff-insert">&lt;b&gt;</ins>'
    """
    parts = []
    for op in ops:
        if not op.text:
            continue
        opening, closing = TAGS[op.kind]
        parts.append(f"{opening}{escape(op.text, quote=True)}{closing}")
    return "".join(parts)
