from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from runner_sizer.codec import decode
from runner_sizer.errors import ShortenError
from runner_sizer.share import STATE_PARAM, build_share_url, share_link, shorten_url

LONG_URL = "https://planner.example.com/?state=abc"


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_build_share_url_round_trips_state(state):
    url = build_share_url("https://planner.example.com/capacity", state)
    parts = urlsplit(url)
    assert parts.path == "/capacity"
    token = parse_qs(parts.query)[STATE_PARAM][0]
    assert decode(token) == state


def test_build_share_url_replaces_existing_state(state):
    url = build_share_url("https://planner.example.com/?state=old&tab=runners", state)
    query = parse_qs(urlsplit(url).query)
    assert query["tab"] == ["runners"]
    assert len(query[STATE_PARAM]) == 1
    assert query[STATE_PARAM][0] != "old"


@pytest.mark.asyncio
async def test_shorten_url_returns_short_link():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url.params["url"]
        return httpx.Response(200, text="https://tinyurl.com/abc123\n")

    async with mock_client(handler) as client:
        assert await shorten_url(LONG_URL, client=client) == "https://tinyurl.com/abc123"
    assert seen["url"] == LONG_URL


@pytest.mark.asyncio
async def test_shorten_url_rejects_error_status():
    async with mock_client(lambda request: httpx.Response(500, text="Error")) as client:
        with pytest.raises(ShortenError):
            await shorten_url(LONG_URL, client=client)


@pytest.mark.asyncio
async def test_shorten_url_rejects_non_url_body():
    async with mock_client(lambda request: httpx.Response(200, text="Error")) as client:
        with pytest.raises(ShortenError):
            await shorten_url(LONG_URL, client=client)


@pytest.mark.asyncio
async def test_shorten_url_wraps_network_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        with pytest.raises(ShortenError):
            await shorten_url(LONG_URL, client=client)


@pytest.mark.asyncio
async def test_share_link_prefers_short_url():
    async with mock_client(lambda request: httpx.Response(200, text="https://tinyurl.com/x")) as client:
        link = await share_link(LONG_URL, client=client)
    assert link.url == "https://tinyurl.com/x"
    assert link.shortened


@pytest.mark.asyncio
async def test_share_link_falls_back_to_full_url():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with mock_client(handler) as client:
        link = await share_link(LONG_URL, client=client)
    assert link.url == LONG_URL
    assert not link.shortened
