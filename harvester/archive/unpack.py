"""Tarball unpacking with wrapper-directory remapping."""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path
from typing import BinaryIO

from harvester.errors import ExtractionError

logger = logging.getLogger(__name__)

#: Top-level directory every registry tarball wraps its files in.
WRAPPER_SEGMENT = "package"


def remap_entry(name: str, folder: str) -> str:
    """Replace a leading ``package`` path segment of *name* with *folder*.

    Entries outside the wrapper directory are returned unchanged.
    """
    head, sep, rest = name.partition("/")
    if head != WRAPPER_SEGMENT:
        return name
    return f"{folder}{sep}{rest}"


def _remap_member(member: tarfile.TarInfo, folder: str) -> tarfile.TarInfo:
    member.name = remap_entry(member.name, folder)
    # Hardlink targets are archive paths too; symlink targets are relative
    # to the link and stay as they are.
    if member.islnk():
        member.linkname = remap_entry(member.linkname, folder)
    return member


def extract_tarball(fileobj: BinaryIO, dest: Path, folder: str) -> Path:
    """Unpack the uncompressed tar stream *fileobj* under *dest*.

    The archive is read sequentially, one member at a time, so *fileobj* may
    be a non-seekable stream.  Entries inside the archive's ``package/``
    wrapper land in ``dest / folder`` instead.  Blocking; run it in a worker
    thread.

    Raises:
        ExtractionError: On a malformed archive or any I/O failure.
    """
    dest = Path(dest)
    count = 0
    try:
        dest.mkdir(parents=True, exist_ok=True)
        with tarfile.open(fileobj=fileobj, mode="r|") as tar:
            for member in tar:
                tar.extract(_remap_member(member, folder), dest, filter="data")
                count += 1
    except (tarfile.TarError, OSError, KeyError) as exc:
        raise ExtractionError(f"failed to extract {folder!r} into {dest}: {exc}") from exc

    target = dest / folder
    logger.debug("[ARCHIVE] unpacked %d entries into %s", count, target)
    return target
