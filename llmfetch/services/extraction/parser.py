"""Pull a single XPath expression out of free-form model output."""

from __future__ import annotations

import logging
import re
from typing import Iterator, Optional

from .xpath import is_valid_xpath

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```[ \t]*[A-Za-z0-9_+-]*[ \t]*\n?(.*?)```", re.DOTALL)
_BACKTICK_SPAN = re.compile(r"`([^`\n]+)`")
# Predicates and quoted literals may contain spaces; everything else stops at whitespace.
_LOOSE_XPATH = re.compile(r"//(?:\[[^\]\n]*\]|'[^'\n]*'|\"[^\"\n]*\"|[^\s\[\]'\"`])+")


def _fenced_candidates(text: str) -> Iterator[str]:
    for match in _FENCED_BLOCK.finditer(text):
        for line in match.group(1).splitlines():
            line = line.strip()
            if line:
                yield line


def _line_candidates(text: str) -> Iterator[str]:
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("/"):
            yield line
        for match in _BACKTICK_SPAN.finditer(line):
            yield match.group(1).strip()
        for match in _LOOSE_XPATH.finditer(line):
            # Stopped at an unclosed predicate; the prefix alone would be misleading.
            if line[match.end():match.end() + 1] == "[":
                continue
            yield match.group(0).strip()


def parse_xpath_from_response(response: Optional[str]) -> Optional[str]:
    """Return the first candidate that passes validation, or None.

    Fenced code blocks anywhere in the response win over anything found line by
    line. As a last resort a response that itself starts with a slash has its
    first line tried.
    """
    if not response or not response.strip():
        return None

    for candidate in _fenced_candidates(response):
        if is_valid_xpath(candidate):
            return candidate

    for candidate in _line_candidates(response):
        if is_valid_xpath(candidate):
            return candidate

    trimmed = response.strip()
    if trimmed.startswith("/"):
        first_line = trimmed.splitlines()[0].strip()
        if is_valid_xpath(first_line):
            return first_line

    logger.debug("No valid XPath in response: %.200r", response)
    return None
