"""Tests for llmfetch.services.fetch using an in-memory httpx transport."""

import httpx
import pytest

from llmfetch.errors import FetchError
from llmfetch.services.fetch import fetch_html


def _transport(status: int = 200, body: str = "<html><body>ok</body></html>"):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status, text=body)

    return httpx.MockTransport(handler), seen


class TestFetchHtml:

    @pytest.mark.asyncio
    async def test_returns_body(self):
        transport, seen = _transport()
        body = await fetch_html("https://shop.example/p", user_agent="tester/1", transport=transport)
        assert body == "<html><body>ok</body></html>"
        assert seen[0].headers["User-Agent"] == "tester/1"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        transport, _ = _transport(status=404)
        with pytest.raises(FetchError, match="404"):
            await fetch_html("https://shop.example/missing", transport=transport)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(FetchError, match="Could not fetch"):
            await fetch_html("https://down.example", transport=httpx.MockTransport(handler))
