from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple

from ..errors import GenerationFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationParams:
    temperature: float = 0.0
    top_k: int = 1
    top_p: float = 1.0
    seed: int = 42
    max_tokens: int = 256
    stop: Tuple[str, ...] = field(default_factory=tuple)
    # Applies to the model call alone, not to time spent waiting for the lock
    timeout: Optional[float] = None


class Generator(Protocol):
    async def complete(self, prompt: str, params: GenerationParams) -> str:
        """Return the raw model text. Implementations honour params.timeout."""
        ...


class OpenAIGenerator:
    """Chat-completions client for an OpenAI-compatible server (llama.cpp, vLLM, ...).

    The model behind the endpoint is treated as a single shared resource, so
    calls are serialized with a lock.
    """

    def __init__(self, base_url: str, api_key: str, model: str) -> None:
        if not base_url or not model:
            raise RuntimeError("LLM_BASE_URL and LLM_MODEL must be set")
        self.base_url = base_url
        self.model = model

        from openai import AsyncOpenAI  # type: ignore

        # llama.cpp style servers ignore the key but the client insists on one
        self._client = AsyncOpenAI(base_url=base_url, api_key=api_key or "not-needed")
        self._lock = asyncio.Lock()

    def _build_completion_args(self, prompt: str, params: GenerationParams) -> Dict[str, Any]:
        args: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": params.temperature,
            "top_p": params.top_p,
            "seed": params.seed,
            "max_tokens": params.max_tokens,
        }
        if params.stop:
            args["stop"] = list(params.stop)
        # Non-standard sampling params go through extra_body
        args["extra_body"] = {"top_k": params.top_k}
        return args

    async def complete(self, prompt: str, params: GenerationParams) -> str:
        completion_args = self._build_completion_args(prompt, params)
        async with self._lock:
            try:
                call = self._client.chat.completions.create(**completion_args)
                if params.timeout:
                    response = await asyncio.wait_for(call, timeout=params.timeout)
                else:
                    response = await call
            except asyncio.TimeoutError as exc:
                raise GenerationFailure(f"generation timed out after {params.timeout}s") from exc
            except Exception as exc:
                raise GenerationFailure(f"LLM call failed: {exc}") from exc

        if not response or not getattr(response, "choices", None):
            raise GenerationFailure("LLM returned no choices")
        message = getattr(response.choices[0], "message", None)
        return (getattr(message, "content", "") or "").strip()

    async def close(self) -> None:
        await self._client.close()


def build_generator(settings: Any) -> Optional[OpenAIGenerator]:
    if not settings.llm_base_url or not settings.llm_model:
        logger.warning("LLM_BASE_URL/LLM_MODEL not configured; scraping is disabled")
        return None
    return OpenAIGenerator(settings.llm_base_url, settings.llm_api_key, settings.llm_model)
