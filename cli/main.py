"""npm-harvester CLI — entry-point for the harvesting pipeline.

Usage:
    python cli/main.py --help

Commands:
    download  → scrape the ranking and unpack the top N packages
    listing   → print one scraped listing page
    resolve   → show where a package's tarball and folder would be
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from harvester.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
from typing import NoReturn, Optional

import httpx
import typer

from harvester.archive.fetcher import folder_name, tarball_url
from harvester.config import settings
from harvester.errors import HarvestError
from harvester.log import setup_logging
from harvester.pipeline.orchestrator import download_packages, make_client
from harvester.scraper.fetcher import fetch_listing_page

app = typer.Typer(
    name="harvest",
    help="Download the most depended-upon npm packages.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level."),
) -> None:
    """Configure logging before any command runs."""
    setup_logging(log_level)


def _fail(label: str, exc: BaseException) -> NoReturn:
    cause = exc.__cause__ or exc
    typer.echo(f"[{label}] Failed: {cause}", err=True)
    raise typer.Exit(code=1)


@app.command("download")
def download(
    count: int = typer.Option(..., "--count", min=1, help="Number of packages to fetch."),
    dest: Optional[Path] = typer.Option(None, "--dest", help="Extraction root directory."),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", min=1, help="Parallel downloads per batch."
    ),
) -> None:
    """Scrape the ranking and unpack the top COUNT packages."""
    if dest is not None:
        settings.packages_dir = dest
    if concurrency is not None:
        settings.download_concurrency = concurrency

    root = settings.ensure_packages_dir()
    typer.echo(f"[download] Fetching {count} package(s) into {root} …")
    try:
        names = asyncio.run(download_packages(count, dest=root))
    except (HarvestError, httpx.HTTPError) as exc:
        _fail("download", exc)
    typer.echo(f"[download] Extracted {len(names)} package(s) into {root}")


@app.command("listing")
def listing(
    offset: int = typer.Option(0, "--offset", min=0, help="Listing offset."),
) -> None:
    """Print the packages on one listing page."""

    async def _fetch():
        async with make_client() as client:
            return await fetch_listing_page(client, offset)

    try:
        refs = asyncio.run(_fetch())
    except (HarvestError, httpx.HTTPError) as exc:
        _fail("listing", exc)
    if not refs:
        typer.echo(f"[listing] No packages found at offset {offset}.")
        return
    for ref in refs:
        typer.echo(str(ref))


@app.command("resolve")
def resolve(
    name: str = typer.Argument(..., help="Package name, e.g. @types/node."),
    version: str = typer.Argument(..., help="Package version."),
) -> None:
    """Show the tarball URL and target folder for NAME@VERSION."""
    typer.echo(f"url    : {tarball_url(name, version)}")
    typer.echo(f"folder : {settings.packages_dir / folder_name(name)}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
