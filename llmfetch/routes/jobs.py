from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import Fetcher, get_engine, get_fetcher, get_job_store
from ..errors import FetchError, JobNotFound, ValidationError
from ..persistence import Job, JobStore
from ..schemas import CreateJobRequest, InsertRowRequest, ScrapeRequest
from ..services.extraction import ExtractionEngine
from ..services.scrape import scrape_into_job

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"])


def _format_job(job: Job) -> Dict[str, Any]:
    return {
        "id": job.id,
        "createdAt": job.created_at.isoformat(),
        "fields": job.fields,
        "fieldCounts": job.field_counts,
        "rowCount": job.row_count,
    }


async def _require_job(store: JobStore, job_id: int) -> Job:
    job = await store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="not found")
    return job


@router.get("")
async def list_jobs(store: JobStore = Depends(get_job_store)) -> List[Dict[str, Any]]:
    return [_format_job(job) for job in await store.list_jobs()]


@router.post("", status_code=201)
async def create_job(request: CreateJobRequest, store: JobStore = Depends(get_job_store)) -> Dict[str, Any]:
    try:
        job_id = await store.create_job(request.fields)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"id": job_id}


@router.get("/{job_id}")
async def read_job(job_id: int, store: JobStore = Depends(get_job_store)) -> List[Dict[str, Any]]:
    await _require_job(store, job_id)
    rows = await store.read_rows(job_id)
    return [row.to_dict() for row in rows]


@router.delete("/{job_id}")
async def delete_job(job_id: int, store: JobStore = Depends(get_job_store)) -> Dict[str, Any]:
    if not await store.delete_job(job_id):
        raise HTTPException(status_code=404, detail="not found")
    return {"success": True}


@router.post("/{job_id}/rows", status_code=201)
async def insert_row(
    job_id: int,
    request: InsertRowRequest,
    store: JobStore = Depends(get_job_store),
) -> Dict[str, Any]:
    try:
        row_id = await store.insert_row(job_id, request.data)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="not found")
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"rowId": row_id}


@router.get("/{job_id}/rows/{row_id}")
async def read_row(job_id: int, row_id: int, store: JobStore = Depends(get_job_store)) -> Dict[str, Any]:
    rows = await store.read_rows(job_id, row_id)
    if not rows:
        raise HTTPException(status_code=404, detail="not found")
    return rows[0].to_dict()


@router.delete("/{job_id}/rows/{row_id}")
async def delete_row(job_id: int, row_id: int, store: JobStore = Depends(get_job_store)) -> Dict[str, Any]:
    if not await store.delete_row(job_id, row_id):
        raise HTTPException(status_code=404, detail="not found")
    return {"success": True}


@router.post("/{job_id}/scrape")
async def scrape(
    job_id: int,
    request: ScrapeRequest,
    store: JobStore = Depends(get_job_store),
    engine: ExtractionEngine = Depends(get_engine),
    fetcher: Fetcher = Depends(get_fetcher),
) -> Dict[str, Any]:
    try:
        row_id, results = await scrape_into_job(store, engine, fetcher, job_id, request.url, request.fields)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="not found")
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except FetchError as exc:
        logger.warning("Scrape of %s failed: %s", request.url, exc)
        raise HTTPException(status_code=502, detail=f"scraping failed: {exc}")
    return {"rowId": row_id, "results": results}
