"""
Allow-list sanitizer for generated summary markup.

Delegated summaries come back as model-written HTML. Only simple text
structure survives; everything else is unwrapped to its text, and
script-like elements are dropped with their content.
"""

import re

from bs4 import BeautifulSoup, Comment


ALLOWED_TAGS = {"p", "ul", "ol", "li", "h3", "h4", "h5", "strong", "em", "b", "i", "br"}
DROPPED_TAGS = ["script", "style", "iframe", "object", "embed", "noscript", "template"]

_FENCE_RE = re.compile(r"^\s*```(?:html)?\s*|\s*```\s*$", re.IGNORECASE)


def sanitize_html(markup: str) -> str:
    """
    Reduce markup to the allowed tags with no attributes.

    Example:
        >>> sanitize_html('<p onclick="x()">Hi<script>bad()</script></p>')
        '<p>Hi</p>'
    """
    markup = _FENCE_RE.sub("", markup)
    soup = BeautifulSoup(markup, "html.parser")

    for tag in soup(DROPPED_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if tag.name in ALLOWED_TAGS:
            tag.attrs = {}
        else:
            tag.unwrap()

    return str(soup).strip()
