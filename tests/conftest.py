"""Shared fixtures: isolated settings plus builders for fake listings/tarballs."""

from __future__ import annotations

import gzip
import io
import tarfile
from typing import Callable, Iterable

import pytest

from harvester.config import settings

LISTING_URL = "https://www.npmjs.com/browse/depended"
REGISTRY_URL = "https://registry.npmjs.org"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Pin every setting the pipeline reads so a local .env cannot leak in."""
    monkeypatch.setattr(settings, "listing_url", LISTING_URL)
    monkeypatch.setattr(settings, "registry_url", REGISTRY_URL)
    monkeypatch.setattr(settings, "page_size", 36)
    monkeypatch.setattr(settings, "listing_concurrency", 3)
    monkeypatch.setattr(settings, "download_concurrency", 3)
    monkeypatch.setattr(settings, "request_timeout", None)
    monkeypatch.setattr(settings, "packages_dir", tmp_path / "packages")
    return settings


@pytest.fixture()
def listing_html() -> Callable[[Iterable[tuple[str, str]]], str]:
    """Build a listing page containing one version anchor per ``(name, version)``."""

    def _build(pairs: Iterable[tuple[str, str]]) -> str:
        rows = "\n".join(
            f'<li><h3>{name}</h3><p>A package</p>'
            f'<a class="version" href="/package/{name}">{version}</a></li>'
            for name, version in pairs
        )
        return f"<!DOCTYPE html><html><body><ul>\n{rows}\n</ul></body></html>"

    return _build


@pytest.fixture()
def make_tar() -> Callable[..., bytes]:
    """Build an uncompressed tar whose entries sit under *wrapper*/."""

    def _build(files: dict[str, bytes], wrapper: str = "package") -> bytes:
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w") as tar:
            for path, data in files.items():
                info = tarfile.TarInfo(f"{wrapper}/{path}" if wrapper else path)
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
        return buf.getvalue()

    return _build


@pytest.fixture()
def make_tgz(make_tar) -> Callable[..., bytes]:
    """Same as ``make_tar`` but gzip-compressed, like a registry ``.tgz``."""

    def _build(files: dict[str, bytes], wrapper: str = "package") -> bytes:
        return gzip.compress(make_tar(files, wrapper))

    return _build
