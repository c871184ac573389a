"""Archive fetcher: download a package tarball and unpack it.

Registry tarballs live at ``{name}/-/{name}-{version}.tgz``.  Scoped
packages (``@org/name``) keep the scope in the directory but not in the
file name: ``@org/name/-/name-{version}.tgz``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from urllib.parse import quote

import httpx

from harvester.archive.unpack import extract_tarball
from harvester.compression import GzipStreamReader
from harvester.config import settings
from harvester.errors import FetchError

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves untouched, beyond the ones quote()
# already treats as safe.
_FOLDER_SAFE = "!~*'()"

# The .tgz must arrive byte for byte; no transfer encoding on top of it.
_ARCHIVE_HEADERS = {"Accept-Encoding": "identity"}


def split_scope(pkg: str) -> tuple[str, str]:
    """Split *pkg* into ``(org, name)``.

    ``org`` keeps its trailing slash (``"@types/"``) and is empty for
    unscoped packages.
    """
    if not pkg.startswith("@"):
        return "", pkg
    index = pkg.find("/") + 1
    return pkg[:index], pkg[index:]


def tarball_path(pkg: str, version: str) -> str:
    """Return the registry path (no leading slash) of *pkg*'s tarball."""
    org, name = split_scope(pkg)
    return f"{org}{name}/-/{name}-{version}.tgz"


def tarball_url(pkg: str, version: str) -> str:
    return f"{settings.registry_url.rstrip('/')}/{tarball_path(pkg, version)}"


def folder_name(pkg: str) -> str:
    """Percent-encode *pkg* into a single filesystem-safe path segment."""
    return quote(pkg, safe=_FOLDER_SAFE)


async def fetch_and_extract(
    client: httpx.AsyncClient,
    pkg: str,
    version: str,
    dest: Path | None = None,
) -> str:
    """Download ``pkg@version`` and unpack it under *dest*.

    The tarball's ``package/`` wrapper is renamed to :func:`folder_name`, so
    the files end up in ``dest/{folder_name(pkg)}/``.  Returns *pkg* once
    every entry has been written.

    Raises:
        FetchError: If the registry answers with anything but HTTP 200.
        DecompressionError: If the tarball is not valid gzip.
        ExtractionError: If the tar stream is malformed or the write fails.
    """
    root = Path(dest) if dest is not None else settings.packages_dir
    url = tarball_url(pkg, version)
    folder = folder_name(pkg)

    logger.debug("[ARCHIVE] GET %s", url)
    async with client.stream("GET", url, headers=_ARCHIVE_HEADERS) as response:
        if response.status_code != 200:
            raise FetchError(response.request.url, response.status_code)
        # The body *is* the gzip file; read it raw and inflate it chunk by
        # chunk while the worker thread unpacks entries.
        reader = GzipStreamReader(response.aiter_raw(), asyncio.get_running_loop())
        extraction = asyncio.ensure_future(
            asyncio.to_thread(extract_tarball, reader, root, folder)
        )
        try:
            await asyncio.shield(extraction)
        except asyncio.CancelledError:
            # The worker still pulls from this response; stop it at its next
            # read and wait for it before the response is closed.
            reader.close()
            await asyncio.gather(extraction, return_exceptions=True)
            raise

    logger.info("[ARCHIVE] %s@%s -> %s", pkg, version, root / folder)
    return pkg
