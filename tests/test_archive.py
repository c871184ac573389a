"""Tests for tarball URL resolution, unpacking and download.

Tarballs are built in memory by the ``make_tar``/``make_tgz`` fixtures and
served through ``respx``; everything is written under ``tmp_path``.
"""

from __future__ import annotations

import gzip
import io
import tarfile

import httpx
import pytest
import respx

from harvester.archive.fetcher import (
    fetch_and_extract,
    folder_name,
    split_scope,
    tarball_path,
    tarball_url,
)
from harvester.archive.unpack import extract_tarball, remap_entry
from harvester.errors import DecompressionError, ExtractionError, FetchError


# ---------------------------------------------------------------------------
# URL & folder resolution
# ---------------------------------------------------------------------------

class TestResolution:
    def test_scoped_path(self) -> None:
        assert split_scope("@scope/name") == ("@scope/", "name")
        assert tarball_path("@scope/name", "1.2.3") == "@scope/name/-/name-1.2.3.tgz"

    def test_unscoped_path(self) -> None:
        assert split_scope("lodash") == ("", "lodash")
        assert tarball_path("lodash", "4.17.0") == "lodash/-/lodash-4.17.0.tgz"

    def test_url_uses_registry_host(self) -> None:
        assert (
            tarball_url("@types/node", "20.1.0")
            == "https://registry.npmjs.org/@types/node/-/node-20.1.0.tgz"
        )

    def test_url_tolerates_trailing_slash(self, isolated_settings) -> None:
        isolated_settings.registry_url = "https://mirror.example.com/npm/"
        assert tarball_url("ms", "2.1.3") == "https://mirror.example.com/npm/ms/-/ms-2.1.3.tgz"

    @pytest.mark.parametrize(
        ("pkg", "expected"),
        [
            ("lodash", "lodash"),
            ("@scope/name", "%40scope%2Fname"),
            ("lodash.merge", "lodash.merge"),
            ("@a_b/c-d", "%40a_b%2Fc-d"),
            ("weird!~*'()", "weird!~*'()"),
        ],
    )
    def test_folder_name_matches_uri_component_encoding(self, pkg: str, expected: str) -> None:
        assert folder_name(pkg) == expected


# ---------------------------------------------------------------------------
# Unpacking
# ---------------------------------------------------------------------------

class TestRemapEntry:
    def test_wrapper_segment_is_replaced(self) -> None:
        assert remap_entry("package/lib/index.js", "%40scope%2Fname") == "%40scope%2Fname/lib/index.js"

    def test_bare_wrapper_directory(self) -> None:
        assert remap_entry("package", "lodash") == "lodash"
        assert remap_entry("package/", "lodash") == "lodash/"

    def test_similar_prefix_is_not_replaced(self) -> None:
        assert remap_entry("packages/x.js", "lodash") == "packages/x.js"
        assert remap_entry("other/package/x.js", "lodash") == "other/package/x.js"


class TestExtractTarball:
    def test_files_land_under_folder_name(self, tmp_path, make_tar) -> None:
        data = make_tar({"package.json": b"{}", "lib/index.js": b"module.exports = 1;"})
        target = extract_tarball(io.BytesIO(data), tmp_path, "%40scope%2Fname")

        assert target == tmp_path / "%40scope%2Fname"
        assert (target / "lib" / "index.js").read_bytes() == b"module.exports = 1;"
        assert (target / "package.json").read_bytes() == b"{}"
        assert not (tmp_path / "package").exists()

    def test_malformed_tar_raises_extraction_error(self, tmp_path) -> None:
        with pytest.raises(ExtractionError):
            extract_tarball(io.BytesIO(b"not a tar archive" * 64), tmp_path, "broken")

    def test_io_failure_raises_extraction_error(self, tmp_path, make_tar) -> None:
        blocker = tmp_path / "occupied"
        blocker.write_text("a file, not a directory")
        with pytest.raises(ExtractionError):
            extract_tarball(io.BytesIO(make_tar({"a.js": b"1"})), blocker, "pkg")

    def test_hardlink_inside_wrapper_is_remapped(self, tmp_path) -> None:
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w") as tar:
            original = tarfile.TarInfo("package/a.js")
            original.size = 7
            tar.addfile(original, io.BytesIO(b"shared;"))
            link = tarfile.TarInfo("package/b.js")
            link.type = tarfile.LNKTYPE
            link.linkname = "package/a.js"
            tar.addfile(link)

        target = extract_tarball(io.BytesIO(buf.getvalue()), tmp_path, "%40scope%2Fname")

        assert (target / "a.js").read_bytes() == b"shared;"
        assert (target / "b.js").read_bytes() == b"shared;"
        assert not (tmp_path / "package").exists()

    def test_dangling_hardlink_raises_extraction_error(self, tmp_path) -> None:
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w") as tar:
            link = tarfile.TarInfo("package/b.js")
            link.type = tarfile.LNKTYPE
            link.linkname = "package/missing.js"
            tar.addfile(link)

        with pytest.raises(ExtractionError):
            extract_tarball(io.BytesIO(buf.getvalue()), tmp_path, "pkg")


# ---------------------------------------------------------------------------
# fetch_and_extract
# ---------------------------------------------------------------------------

class TestFetchAndExtract:
    async def test_downloads_and_unpacks_scoped_package(self, tmp_path, make_tgz) -> None:
        url = "https://registry.npmjs.org/@scope/name/-/name-1.2.3.tgz"
        with respx.mock:
            route = respx.get(url).mock(
                return_value=httpx.Response(200, content=make_tgz({"lib/index.js": b"x"}))
            )
            async with httpx.AsyncClient() as client:
                result = await fetch_and_extract(client, "@scope/name", "1.2.3", dest=tmp_path)

        assert route.called
        assert route.calls.last.request.headers["accept-encoding"] == "identity"
        assert result == "@scope/name"
        assert (tmp_path / "%40scope%2Fname" / "lib" / "index.js").read_bytes() == b"x"
        assert not (tmp_path / "package").exists()

    async def test_defaults_to_configured_packages_dir(self, isolated_settings, make_tgz) -> None:
        with respx.mock:
            respx.get("https://registry.npmjs.org/ms/-/ms-2.1.3.tgz").mock(
                return_value=httpx.Response(200, content=make_tgz({"index.js": b"ms"}))
            )
            async with httpx.AsyncClient() as client:
                await fetch_and_extract(client, "ms", "2.1.3")

        assert (isolated_settings.packages_dir / "ms" / "index.js").read_bytes() == b"ms"

    async def test_missing_tarball_raises_fetch_error(self, tmp_path) -> None:
        with respx.mock:
            respx.get("https://registry.npmjs.org/nope/-/nope-0.0.0.tgz").mock(
                return_value=httpx.Response(404)
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(FetchError) as exc_info:
                    await fetch_and_extract(client, "nope", "0.0.0", dest=tmp_path)

        assert exc_info.value.status_code == 404
        assert "registry.npmjs.org/nope/-/nope-0.0.0.tgz" in str(exc_info.value)

    async def test_non_gzip_body_raises_decompression_error(self, tmp_path, make_tar) -> None:
        with respx.mock:
            respx.get("https://registry.npmjs.org/ms/-/ms-2.1.3.tgz").mock(
                return_value=httpx.Response(200, content=make_tar({"index.js": b"ms"}))
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(DecompressionError):
                    await fetch_and_extract(client, "ms", "2.1.3", dest=tmp_path)

    async def test_gzip_of_garbage_raises_extraction_error(self, tmp_path) -> None:
        with respx.mock:
            respx.get("https://registry.npmjs.org/ms/-/ms-2.1.3.tgz").mock(
                return_value=httpx.Response(200, content=gzip.compress(b"garbage" * 200))
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(ExtractionError):
                    await fetch_and_extract(client, "ms", "2.1.3", dest=tmp_path)
