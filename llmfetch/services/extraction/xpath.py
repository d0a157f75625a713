"""XPath validation and evaluation on top of lxml."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Union

from lxml import etree
from lxml import html as lxml_html

logger = logging.getLogger(__name__)

MIN_XPATH_LENGTH = 2
MAX_XPATH_LENGTH = 1000

# lxml refuses str input that still carries an encoding declaration
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

_PLACEHOLDER_DOCUMENT = lxml_html.fromstring("<html><body><div></div></body></html>")


def is_valid_xpath(candidate: str) -> bool:
    """Return True when *candidate* looks like a usable location path.

    Lexical checks run first; the expression is then compiled and run against a
    tiny placeholder document so unbalanced brackets or quotes, unknown
    functions and similar mistakes are caught without raising. Surrounding
    whitespace is rejected; callers strip candidates first.
    """
    if not isinstance(candidate, str):
        return False
    xpath = candidate
    if xpath != xpath.strip():
        return False
    if not xpath.startswith("/"):
        return False
    if not xpath.lstrip("/").strip():
        return False
    if "<" in xpath or ">" in xpath:
        return False
    if not MIN_XPATH_LENGTH <= len(xpath) < MAX_XPATH_LENGTH:
        return False

    try:
        compiled = etree.XPath(xpath)
        compiled(_PLACEHOLDER_DOCUMENT)
    except etree.XPathError as exc:
        logger.debug("Rejected XPath %r: %s", xpath, exc)
        return False
    return True


def parse_document(markup: Union[str, bytes]) -> etree._Element:
    if isinstance(markup, str):
        markup = _XML_DECLARATION.sub("", markup, count=1)
    return lxml_html.fromstring(markup)


def _node_text(node: Any) -> str:
    if isinstance(node, etree._Element):
        if isinstance(node, lxml_html.HtmlElement):
            return node.text_content().strip()
        return "".join(node.itertext()).strip()
    if isinstance(node, bool):
        return "true" if node else "false"
    if isinstance(node, float) and node.is_integer():
        return str(int(node))
    return str(node).strip()


def evaluate_xpath(document: Union[str, bytes, etree._Element], query: str) -> List[str]:
    """Run *query* against *document* and return the matched texts, trimmed.

    Elements contribute their text content, attribute and text nodes their
    string value, and scalar results (count(), boolean tests) a single item.
    Any parse or evaluation error counts as zero matches.
    """
    try:
        tree = parse_document(document) if isinstance(document, (str, bytes)) else document
        result = tree.xpath(query)
    except (etree.LxmlError, ValueError) as exc:
        logger.debug("XPath evaluation failed for %r: %s", query, exc)
        return []

    if isinstance(result, list):
        return [_node_text(node) for node in result]
    return [_node_text(result)]
