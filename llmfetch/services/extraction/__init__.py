"""
XPath-based field extraction driven by a text-generation model.

This package provides:
- Validation of candidate XPath expressions (xpath)
- Parsing of XPath candidates out of raw model output (parser)
- Prompt construction with per-attempt hints (prompts)
- The bounded generate-validate-evaluate retry loop (engine)
"""

from .engine import ExtractionEngine, FieldExtraction
from .parser import parse_xpath_from_response
from .prompts import ATTEMPT_HINTS, build_prompt
from .xpath import evaluate_xpath, is_valid_xpath

__all__ = [
    "ATTEMPT_HINTS",
    "ExtractionEngine",
    "FieldExtraction",
    "build_prompt",
    "evaluate_xpath",
    "is_valid_xpath",
    "parse_xpath_from_response",
]
