from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..errors import FetchError

logger = logging.getLogger(__name__)


async def fetch_html(
    url: str,
    *,
    timeout: float = 30.0,
    user_agent: str = "llmfetch/0.1",
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Download *url* and return the response body as text."""
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
            transport=transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(f"{url} returned HTTP {exc.response.status_code}") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"Could not fetch {url}: {exc}") from exc

    logger.info("Fetched %s (%d bytes)", url, len(response.content))
    return response.text
