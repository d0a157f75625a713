from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from ..dependencies import engine, settings

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "llm": {
            "configured": engine is not None,
            "base_url": settings.llm_base_url or None,
            "model": settings.llm_model,
            "max_attempts": settings.extraction_max_attempts,
            "timeout_sec": settings.llm_timeout,
        },
        "db_path": str(settings.db_path),
    }
