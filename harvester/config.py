"""Centralised settings for the harvester.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _optional_float(name: str) -> float | None:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Scrape target
    # ------------------------------------------------------------------
    listing_url: str = field(
        default_factory=lambda: os.environ.get(
            "HARVEST_LISTING_URL", "https://www.npmjs.com/browse/depended"
        )
    )
    page_size: int = field(
        default_factory=lambda: int(os.environ.get("HARVEST_PAGE_SIZE", "36"))
    )

    # ------------------------------------------------------------------
    # Registry / archives
    # ------------------------------------------------------------------
    registry_url: str = field(
        default_factory=lambda: os.environ.get(
            "HARVEST_REGISTRY_URL", "https://registry.npmjs.org"
        )
    )
    packages_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_PACKAGES_DIR", "./packages"))
    )

    # ------------------------------------------------------------------
    # Concurrency / network
    # ------------------------------------------------------------------
    listing_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("HARVEST_LISTING_CONCURRENCY", "3"))
    )
    download_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("HARVEST_DOWNLOAD_CONCURRENCY", "3"))
    )
    # None disables the timeout entirely.
    request_timeout: float | None = field(
        default_factory=lambda: _optional_float("HARVEST_REQUEST_TIMEOUT")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("HARVEST_LOG_LEVEL", "INFO")
    )

    def ensure_packages_dir(self) -> Path:
        """Create the extraction root if it does not exist and return it."""
        self.packages_dir.mkdir(parents=True, exist_ok=True)
        return self.packages_dir


# Module-level singleton — import this everywhere:
#   from harvester.config import settings
settings = Settings()
