"""Data models for the listing scraper."""

from __future__ import annotations

from typing import NamedTuple


class PackageRef(NamedTuple):
    """One package release as it appears on a listing page."""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"
