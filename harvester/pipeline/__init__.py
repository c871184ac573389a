"""Pipeline package — batch runner & orchestration."""

from harvester.pipeline.batch import run_batches
from harvester.pipeline.orchestrator import collect_listing, download_packages, page_offsets, run

__all__ = ["run_batches", "collect_listing", "download_packages", "page_offsets", "run"]
