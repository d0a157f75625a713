from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from ..errors import JobNotFound, ValidationError
from ..persistence import JobStore
from .extraction import ExtractionEngine

logger = logging.getLogger(__name__)


def row_value(values: Optional[List[str]]) -> Any:
    """Collapse an extraction result into what gets stored for one column.

    Unresolved fields stay NULL, a single match is stored as plain text and
    several matches as a list (serialized by the store).
    """
    if values is None:
        return None
    if len(values) == 1:
        return values[0]
    return list(values)


async def scrape_into_job(
    store: JobStore,
    engine: ExtractionEngine,
    fetcher: Callable[[str], Awaitable[str]],
    job_id: int,
    url: str,
    fields: Optional[Sequence[str]] = None,
) -> Tuple[int, Dict[str, Optional[List[str]]]]:
    job = await store.get_job(job_id)
    if job is None:
        raise JobNotFound(job_id)

    requested = list(fields) if fields else list(job.fields)
    unknown = [f for f in requested if f not in job.fields]
    if unknown:
        raise ValidationError(f"fields not declared by job {job_id}: {', '.join(unknown)}")
    if len(set(requested)) != len(requested):
        raise ValidationError("fields must not repeat")

    html = await fetcher(url)
    results = await engine.extract_fields(html, requested)

    resolved = sum(1 for v in results.values() if v is not None)
    logger.info("Scraped %s for job %s: %d/%d fields resolved", url, job_id, resolved, len(requested))

    row_id = await store.insert_row(job_id, {name: row_value(values) for name, values in results.items()})
    return row_id, results
