from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CreateJobRequest(BaseModel):
    fields: List[str] = Field(default_factory=list)


class InsertRowRequest(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict)


class ScrapeRequest(BaseModel):
    url: str = Field(min_length=1)
    fields: Optional[List[str]] = Field(default=None)
