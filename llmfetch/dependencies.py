from __future__ import annotations

from contextlib import asynccontextmanager
from functools import partial
from typing import Awaitable, Callable

from fastapi import FastAPI, HTTPException

from .config import load_settings
from .persistence import JobStore
from .services.extraction import ExtractionEngine
from .services.fetch import fetch_html
from .services.generation import build_generator

Fetcher = Callable[[str], Awaitable[str]]

settings = load_settings()
job_store = JobStore(settings.db_path)
generator = build_generator(settings)
engine = (
    ExtractionEngine(
        generator,
        max_attempts=settings.extraction_max_attempts,
        base_seed=settings.llm_seed,
        seed_stride=settings.llm_seed_stride,
        max_tokens=settings.llm_max_tokens,
        top_k=settings.llm_top_k,
        generation_timeout=settings.llm_timeout,
        max_document_chars=settings.extraction_max_document_chars,
    )
    if generator is not None
    else None
)


def get_job_store() -> JobStore:
    return job_store


def get_engine() -> ExtractionEngine:
    if engine is None:
        raise HTTPException(status_code=503, detail="LLM is not configured (set LLM_BASE_URL and LLM_MODEL)")
    return engine


def get_fetcher() -> Fetcher:
    return partial(fetch_html, timeout=settings.fetch_timeout, user_agent=settings.fetch_user_agent)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await job_store.init()
    yield
    if generator is not None:
        await generator.close()
