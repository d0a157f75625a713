"""
Generate-validate-evaluate loop.

For each field the model is asked for an XPath expression; the answer is
parsed, validated and run against the document. Failed attempts are retried
with a different seed and prompt hint until one yields a non-empty match or the
configured number of attempts is used up.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from lxml import etree

from ..generation import GenerationParams, Generator
from .document import simplify_html
from .parser import parse_xpath_from_response
from .prompts import build_prompt
from .xpath import evaluate_xpath, parse_document

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_SEED = 42
DEFAULT_SEED_STRIDE = 1000

# Attempt outcomes
SUCCESS = "success"
GENERATION_FAILED = "generation_failed"
NO_CANDIDATE = "no_candidate"
NO_MATCHES = "no_matches"


@dataclass
class AttemptRecord:
    index: int
    seed: int
    outcome: str
    response: Optional[str] = None
    xpath: Optional[str] = None
    values: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class FieldExtraction:
    """Result of running the retry loop for one field."""
    field_name: str
    values: Optional[List[str]] = None
    xpath: Optional[str] = None
    attempts: List[AttemptRecord] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.values is not None


@dataclass
class PreparedDocument:
    tree: Optional[etree._Element]
    prompt_text: str


def has_meaningful_match(values: Sequence[str]) -> bool:
    return any(v.strip() for v in values)


class ExtractionEngine:
    def __init__(
        self,
        generator: Generator,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_seed: int = DEFAULT_BASE_SEED,
        seed_stride: int = DEFAULT_SEED_STRIDE,
        max_tokens: int = 256,
        top_k: int = 1,
        generation_timeout: Optional[float] = 60.0,
        max_document_chars: int = 12000,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.generator = generator
        self.max_attempts = max_attempts
        self.base_seed = base_seed
        self.seed_stride = seed_stride
        self.max_tokens = max_tokens
        self.top_k = top_k
        self.generation_timeout = generation_timeout
        self.max_document_chars = max_document_chars

    def seed_for(self, attempt_index: int) -> int:
        return self.base_seed + attempt_index * self.seed_stride

    def params_for(self, attempt_index: int) -> GenerationParams:
        timeout = self.generation_timeout if self.generation_timeout and self.generation_timeout > 0 else None
        return GenerationParams(
            temperature=0.0,
            top_k=self.top_k,
            top_p=1.0,
            seed=self.seed_for(attempt_index),
            max_tokens=self.max_tokens,
            timeout=timeout,
        )

    def prepare(self, html: str) -> PreparedDocument:
        try:
            tree = parse_document(html)
        except (etree.LxmlError, ValueError) as exc:
            logger.warning("Could not parse document: %s", exc)
            tree = None
        return PreparedDocument(tree=tree, prompt_text=simplify_html(html, self.max_document_chars))

    async def _attempt(self, document: PreparedDocument, field_name: str, attempt_index: int) -> AttemptRecord:
        params = self.params_for(attempt_index)
        record = AttemptRecord(index=attempt_index, seed=params.seed, outcome=NO_CANDIDATE)
        prompt = build_prompt(document.prompt_text, field_name, attempt_index)

        try:
            # The generator applies params.timeout once it holds the model
            record.response = await self.generator.complete(prompt, params)
        except asyncio.TimeoutError:
            record.outcome = GENERATION_FAILED
            record.error = f"generation timed out after {self.generation_timeout}s"
            return record
        except Exception as exc:
            record.outcome = GENERATION_FAILED
            record.error = str(exc) or exc.__class__.__name__
            return record

        record.xpath = parse_xpath_from_response(record.response)
        if record.xpath is None:
            record.outcome = NO_CANDIDATE
            return record

        record.values = evaluate_xpath(document.tree, record.xpath)
        if record.values and has_meaningful_match(record.values):
            record.outcome = SUCCESS
        else:
            record.outcome = NO_MATCHES
        return record

    async def extract_field_detailed(
        self,
        html: Union[str, PreparedDocument],
        field_name: str,
    ) -> FieldExtraction:
        document = html if isinstance(html, PreparedDocument) else self.prepare(html)
        result = FieldExtraction(field_name=field_name)

        if document.tree is None:
            logger.warning("Field %r unresolved: document could not be parsed", field_name)
            return result

        for attempt_index in range(self.max_attempts):
            record = await self._attempt(document, field_name, attempt_index)
            result.attempts.append(record)

            if record.outcome == SUCCESS:
                result.values = record.values
                result.xpath = record.xpath
                logger.info(
                    "Resolved field %r with %s on attempt %d (%d matches)",
                    field_name,
                    record.xpath,
                    attempt_index + 1,
                    len(result.values),
                )
                return result

            logger.info(
                "Attempt %d/%d for field %r failed: %s%s",
                attempt_index + 1,
                self.max_attempts,
                field_name,
                record.outcome,
                f" ({record.error})" if record.error else "",
            )

        logger.warning("Field %r unresolved after %d attempts", field_name, self.max_attempts)
        return result

    async def extract_field(self, html: Union[str, PreparedDocument], field_name: str) -> Optional[List[str]]:
        """Return the matched values for *field_name*, or None if unresolved."""
        return (await self.extract_field_detailed(html, field_name)).values

    async def extract_fields(self, html: str, fields: Sequence[str]) -> Dict[str, Optional[List[str]]]:
        document = self.prepare(html)
        results: Dict[str, Optional[List[str]]] = {}
        for field_name in fields:
            results[field_name] = await self.extract_field(document, field_name)
        return results
