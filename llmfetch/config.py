from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class AppSettings:
    db_path: Path
    host: str
    port: int
    cors_origins: Tuple[str, ...]
    log_level: str
    llm_base_url: str
    llm_api_key: str
    llm_model: str
    llm_seed: int
    llm_seed_stride: int
    llm_max_tokens: int
    llm_top_k: int
    llm_timeout: Optional[float]
    extraction_max_attempts: int
    extraction_max_document_chars: int
    fetch_timeout: float
    fetch_user_agent: str


def _int_env(name: str, default: str) -> int:
    return int(os.environ.get(name, default) or default)


def _float_env(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw or default)
    except (TypeError, ValueError):
        return float(default)


def _str_env(name: str, default: str = "") -> str:
    return (os.environ.get(name, default) or default).strip()


def _optional_float_env(name: str, default: Optional[float] = None) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    # 0 or negative disables the timeout
    return value if value > 0 else None


def load_settings() -> AppSettings:
    db_path = Path(os.environ.get("DB_PATH") or (Path.cwd() / "data" / "scrapers.db"))
    port = _int_env("PORT", "3000")
    cors_raw = _str_env("CORS_ORIGINS", f"http://localhost:{port},http://127.0.0.1:{port}")

    return AppSettings(
        db_path=db_path,
        host=_str_env("HOST", "0.0.0.0"),
        port=port,
        cors_origins=tuple(o.strip() for o in cors_raw.split(",") if o.strip()),
        log_level=_str_env("LOG_LEVEL", "INFO").upper(),
        llm_base_url=_str_env("LLM_BASE_URL"),
        llm_api_key=_str_env("LLM_API_KEY"),
        llm_model=_str_env("LLM_MODEL", "stable-code-instruct-3b"),
        llm_seed=_int_env("LLM_SEED", "42"),
        llm_seed_stride=_int_env("LLM_SEED_STRIDE", "1000"),
        llm_max_tokens=_int_env("LLM_MAX_TOKENS", "256"),
        llm_top_k=_int_env("LLM_TOP_K", "1"),
        llm_timeout=_optional_float_env("LLM_TIMEOUT", 60.0),
        extraction_max_attempts=max(1, _int_env("EXTRACTION_MAX_ATTEMPTS", "5")),
        extraction_max_document_chars=_int_env("EXTRACTION_MAX_DOCUMENT_CHARS", "12000"),
        fetch_timeout=_float_env("FETCH_TIMEOUT", "30"),
        fetch_user_agent=_str_env("FETCH_USER_AGENT", "llmfetch/0.1"),
    )
