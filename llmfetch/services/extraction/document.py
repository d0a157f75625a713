"""Shrink HTML before it is placed in a prompt.

Only the prompt sees the simplified markup; XPath evaluation always runs on the
full fetched page.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Comment

_DROPPED_TAGS = ("script", "style", "noscript", "template", "svg", "iframe")
_WHITESPACE = re.compile(r"\s+")
_BETWEEN_TAGS = re.compile(r">\s+<")
TRUNCATION_MARKER = "\n...[TRUNCATED]..."


def simplify_html(markup: str, max_chars: int = 12000) -> str:
    if not markup or not markup.strip():
        return ""

    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(list(_DROPPED_TAGS)):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    root = soup.body or soup
    text = _WHITESPACE.sub(" ", str(root))
    text = _BETWEEN_TAGS.sub("><", text).strip()

    if max_chars > 0 and len(text) > max_chars:
        text = text[:max_chars] + TRUNCATION_MARKER
    return text
