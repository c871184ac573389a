"""Listing fetcher: one page of the most-depended-upon ranking."""

from __future__ import annotations

import logging
from typing import List

import httpx

from harvester.compression import gunzip_stream
from harvester.config import settings
from harvester.errors import DecompressionError, FetchError
from harvester.scraper.extractor import PageExtractor, extract_packages
from harvester.scraper.models import PackageRef

logger = logging.getLogger(__name__)

# Network transfer dominates, so always ask for a compressed page.
_LISTING_HEADERS = {"Accept-Encoding": "gzip,deflate"}


async def _read_body(response: httpx.Response) -> bytes:
    """Return the decoded body of a streamed *response*.

    gzip bodies are inflated here so that corrupt streams surface as
    :class:`DecompressionError`; any other encoding is left to httpx.
    """
    encoding = response.headers.get("content-encoding", "").strip().lower()
    if encoding == "gzip":
        return await gunzip_stream(response.aiter_raw())

    buffer = bytearray()
    try:
        async for chunk in response.aiter_bytes():
            buffer += chunk
    except httpx.DecodingError as exc:
        raise DecompressionError(f"could not decode {encoding or 'body'}: {exc}") from exc
    return bytes(buffer)


async def fetch_listing_page(
    client: httpx.AsyncClient,
    offset: int,
    extractor: PageExtractor = extract_packages,
) -> List[PackageRef]:
    """Fetch the listing page at *offset* and extract its package pairs.

    Raises:
        FetchError: If the server answers with anything but HTTP 200.
        DecompressionError: If the gzip body is corrupt.
    """
    logger.debug("[LISTING] GET %s offset=%d", settings.listing_url, offset)
    async with client.stream(
        "GET",
        settings.listing_url,
        params={"offset": offset},
        headers=_LISTING_HEADERS,
    ) as response:
        if response.status_code != 200:
            raise FetchError(response.request.url, response.status_code)
        body = await _read_body(response)

    packages = extractor(body.decode("utf-8", errors="replace"))
    logger.info("[LISTING] offset=%d yielded %d package(s)", offset, len(packages))
    return packages
