"""Exception hierarchy for the harvesting pipeline."""

from __future__ import annotations

from typing import Any

import httpx


class HarvestError(Exception):
    """Base class for every error raised by the harvester."""


class FetchError(HarvestError):
    """A GET returned something other than HTTP 200."""

    def __init__(self, url: str | httpx.URL, status_code: int) -> None:
        self.url = httpx.URL(str(url))
        self.status_code = status_code
        target = f"{self.url.host}{self.url.raw_path.decode('ascii')}"
        super().__init__(f"GET {target} returned {status_code}")


class DecompressionError(HarvestError):
    """A gzip stream was corrupt or truncated."""


class ExtractionError(HarvestError):
    """An archive could not be unpacked onto disk."""


class BatchError(HarvestError):
    """Wraps the first failure raised by a job inside a batch run.

    The originating exception is available both as :attr:`error` and as
    ``__cause__``; :attr:`item` is the input that produced it.
    """

    def __init__(self, item: Any, error: BaseException) -> None:
        self.item = item
        self.error = error
        super().__init__(f"job {item!r} failed: {error}")
