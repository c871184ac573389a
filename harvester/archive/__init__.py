"""Archive package — tarball download & extraction."""

from harvester.archive.fetcher import fetch_and_extract, folder_name, tarball_path, tarball_url
from harvester.archive.unpack import extract_tarball, remap_entry

__all__ = [
    "fetch_and_extract",
    "folder_name",
    "tarball_path",
    "tarball_url",
    "extract_tarball",
    "remap_entry",
]
