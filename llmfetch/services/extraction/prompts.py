"""Prompt construction for XPath generation."""

from __future__ import annotations

from typing import Optional, Tuple

# One entry per attempt index; later attempts get no extra hint.
ATTEMPT_HINTS: Tuple[str, ...] = (
    "Prefer selecting elements by their class attribute, e.g. //span[@class='price'].",
    "Prefer selecting elements by their position in the tree, e.g. //ul/li[2]/span.",
    "Try a simpler, shorter selector with fewer steps and predicates.",
    "Prefer selecting elements by id or data-* attributes, e.g. //*[@data-field='name'].",
)


def attempt_hint(attempt_index: int) -> Optional[str]:
    if 0 <= attempt_index < len(ATTEMPT_HINTS):
        return ATTEMPT_HINTS[attempt_index]
    return None


def build_prompt(document_text: str, field: str, attempt_index: int = 0) -> str:
    """Build the generation prompt for one attempt at *field*.

    The prompt is a pure function of its arguments so that a given attempt is
    reproducible.
    """
    lines = [
        "You are an expert at writing XPath 1.0 expressions for HTML documents.",
        f'Write an XPath expression that selects every value of the field "{field}" in the HTML below.',
        "",
        "Rules:",
        "- Select elements by structure: tag names, class, id, other attributes or position.",
        "- Do NOT match on text content: no contains(text(), ...), no text()='...', no string comparisons against visible text.",
        "- Output exactly ONE XPath expression, starting with / or //, and nothing else.",
        "- Do not wrap the answer in explanations.",
    ]
    hint = attempt_hint(attempt_index)
    if hint:
        lines.append(f"- Hint: {hint}")

    lines.extend(
        [
            "",
            "HTML:",
            "---",
            document_text,
            "---",
            "",
            "XPath:",
        ]
    )
    return "\n".join(lines)
