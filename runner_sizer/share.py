"""
Share links.

The configuration travels in a single ``state`` query parameter. Shortening
is best effort: any failure falls back to the full URL.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from runner_sizer.codec import encode
from runner_sizer.config import config
from runner_sizer.errors import ShortenError
from runner_sizer.logger import get_logger
from runner_sizer.models import PlannerState

logger = get_logger(__name__)

STATE_PARAM = "state"


@dataclass(frozen=True)
class ShareLink:
    url: str
    shortened: bool


def build_share_url(base_url: str, state: PlannerState) -> str:
    """Return ``base_url`` with its ``state`` parameter replaced by the encoded state."""
    parts = urlsplit(base_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != STATE_PARAM]
    query.append((STATE_PARAM, encode(state)))
    url = urlunsplit(parts._replace(query=urlencode(query)))

    if len(url) > config.MAX_URL_LENGTH:
        logger.warning(
            f"Share URL is {len(url)} characters long and may not work in all browsers"
        )
    return url


async def shorten_url(url: str, client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Shorten ``url`` with the configured shortener.

    Raises:
        ShortenError: network failure, timeout, non-success status, or a
            response body that is not a URL.
    """
    try:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                response = await own_client.get(
                    config.SHORTENER_URL,
                    params={"url": url},
                    timeout=config.SHORTENER_TIMEOUT_SECONDS,
                )
        else:
            response = await client.get(
                config.SHORTENER_URL,
                params={"url": url},
                timeout=config.SHORTENER_TIMEOUT_SECONDS,
            )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise ShortenError(f"Shortener rejected request: {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise ShortenError(f"Shortener unreachable: {e}") from e

    short_url = response.text.strip()
    if not short_url.startswith("http"):
        raise ShortenError(f"Shortener returned an unexpected body: {short_url[:80]!r}")
    return short_url


async def share_link(url: str, client: Optional[httpx.AsyncClient] = None) -> ShareLink:
    """Shorten ``url`` if possible; otherwise hand back the full URL."""
    try:
        short_url = await shorten_url(url, client=client)
    except ShortenError as e:
        logger.warning(f"Falling back to the full share URL: {e}")
        return ShareLink(url=url, shortened=False)

    if short_url == url:
        return ShareLink(url=url, shortened=False)
    logger.info(f"Shortened share URL to {short_url}")
    return ShareLink(url=short_url, shortened=True)
