"""Pipeline orchestrator: listing pages -> package refs -> unpacked archives.

Data flows one way only:

1. :func:`page_offsets` turns the requested count into listing offsets.
2. :func:`collect_listing` scrapes those pages a few at a time and truncates
   the flattened, ordered result to ``count`` entries.
3. :func:`download_packages` feeds exactly that list to the archive stage.

The first error from either stage aborts the run.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from harvester.archive.fetcher import fetch_and_extract
from harvester.config import settings
from harvester.pipeline.batch import run_batches
from harvester.scraper.fetcher import fetch_listing_page
from harvester.scraper.models import PackageRef

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[BaseException]], None]


def page_offsets(count: int, page_size: int | None = None) -> List[int]:
    """Return ``0, page_size, 2*page_size, ...`` until *count* entries are covered."""
    page_size = page_size or settings.page_size
    return list(range(0, max(count, 0), page_size))


def make_client() -> httpx.AsyncClient:
    """Return the shared HTTP client for one pipeline run."""
    return httpx.AsyncClient(timeout=settings.request_timeout)


async def collect_listing(client: httpx.AsyncClient, count: int) -> List[PackageRef]:
    """Scrape enough listing pages for *count* packages, in ranking order."""
    offsets = page_offsets(count)
    logger.info("[PIPELINE] scraping %d listing page(s) for %d package(s)", len(offsets), count)
    refs = await run_batches(
        offsets,
        partial(fetch_listing_page, client),
        settings.listing_concurrency,
    )
    return refs[:count]


async def download_packages(
    count: int,
    client: httpx.AsyncClient | None = None,
    dest: Path | None = None,
) -> List[str]:
    """Download and unpack the *count* most depended-upon packages.

    Args:
        count: How many packages to fetch.  Fewer are fetched when the
            listing runs out.
        client: Optional shared client; one is created (and closed) when
            omitted.
        dest: Extraction root; defaults to ``settings.packages_dir``.

    Returns:
        The names of the extracted packages, in ranking order.
    """
    if client is None:
        async with make_client() as owned:
            return await download_packages(count, owned, dest)

    refs = await collect_listing(client, count)
    logger.info("[PIPELINE] downloading %d package(s)", len(refs))
    names = await run_batches(
        refs,
        partial(fetch_and_extract, client, dest=dest),
        settings.download_concurrency,
    )
    logger.info("[PIPELINE] done: %d package(s) extracted", len(names))
    return names


def run(count: int, callback: Callback | None = None) -> Optional[BaseException]:
    """Blocking entry point with a completion callback.

    Calls ``callback(None)`` on success or ``callback(error)`` with the
    first failure.  Without a callback the failure is raised instead.
    """
    try:
        asyncio.run(download_packages(count))
    except Exception as exc:
        if callback is None:
            raise
        callback(exc)
        return exc
    if callback is not None:
        callback(None)
    return None
