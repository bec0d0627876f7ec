"""
Archive entry lookup over non-seekable streams.

OCI layout archives are read strictly front to back: every lookup opens a
streaming tar reader over a fresh blob stream and scans entries until the
requested path is found. Entry names are compared in a normalized form so
that "/index.json", "./index.json" and "index.json" are the same entry.

Only a clean end of archive ends a scan. A zero block, or running out of
data exactly at a header boundary, is the end; a truncated header, a header
with a bad checksum, or member data cut short is a source error.
"""
from __future__ import annotations

import logging
import posixpath
import tarfile
import zlib
from typing import BinaryIO, Iterator, Optional, Tuple

import zstandard as zstd

from .errors import OciEntryNotFound, OciSourceError

__all__ = [
    "READ_ERRORS",
    "normalize_path",
    "open_tar_stream",
    "iter_entries",
    "read_member",
    "read_tar_entry",
    "is_entry_not_exist",
]

logger = logging.getLogger(__name__)

# Failures that can come out of reading a (possibly compressed) tar stream
READ_ERRORS = (tarfile.TarError, OSError, EOFError, zlib.error, zstd.ZstdError)


class _StrictTarFile(tarfile.TarFile):
    """
    Streaming TarFile that only stops at a clean end of archive.

    The stock reader returns None for a truncated or corrupt header anywhere
    past the first one, which makes a damaged archive look like a short one.
    """

    def next(self) -> Optional[tarfile.TarInfo]:
        self._check("ra")
        if self.firstmember is not None:
            member = self.firstmember
            self.firstmember = None
            return member

        # Skip the remaining data and padding of the previous member
        if self.offset != self.fileobj.tell():
            self.fileobj.seek(self.offset - 1)
            if not self.fileobj.read(1):
                raise tarfile.ReadError("unexpected end of data")

        try:
            tarinfo = self.tarinfo.fromtarfile(self)
        except (tarfile.EOFHeaderError, tarfile.EmptyHeaderError):
            tarinfo = None
        except (tarfile.TruncatedHeaderError, tarfile.InvalidHeaderError) as e:
            raise tarfile.ReadError(f"{e} at offset {self.offset}") from None
        except tarfile.SubsequentHeaderError as e:
            raise tarfile.ReadError(str(e)) from None

        if tarinfo is None:
            self._loaded = True
            return None

        self.members.append(tarinfo)
        return tarinfo


def normalize_path(name: str) -> str:
    """
    Normalize an archive entry name for comparison.

    Collapses "." and ".." components and strips leading "/" and "./".

    Examples:
        >>> normalize_path("/blobs/sha256/abc")
        'blobs/sha256/abc'

        >>> normalize_path("./index.json")
        'index.json'
    """
    normalized = posixpath.normpath(name.lstrip("/"))
    if normalized == ".":
        return ""
    return normalized.lstrip("/")


def open_tar_stream(stream: BinaryIO) -> tarfile.TarFile:
    """
    Open a streaming tar reader over a forward-only stream.

    Closing the returned TarFile does not close ``stream``.

    Raises:
        OciSourceError: If the stream is not a readable tar archive
    """
    try:
        return _StrictTarFile.open(fileobj=stream, mode="r|")
    except READ_ERRORS as e:
        raise OciSourceError(f"failed to read tar archive: {e}") from e


def iter_entries(tar: tarfile.TarFile) -> Iterator[tarfile.TarInfo]:
    """Yield regular file members in archive order."""
    while True:
        try:
            member = tar.next()
        except READ_ERRORS as e:
            raise OciSourceError(f"failed to get next tar entry: {e}") from e
        if member is None:
            return
        if member.isreg():
            yield member


def read_member(tar: tarfile.TarFile, member: tarfile.TarInfo) -> bytes:
    """Read the full contents of a regular member yielded by iter_entries."""
    try:
        reader = tar.extractfile(member)
        with reader:
            return reader.read()
    except READ_ERRORS as e:
        raise OciSourceError(f"failed to read tar entry {member.name!r}: {e}") from e


def read_tar_entry(
    stream: BinaryIO,
    path: str,
    *,
    with_contents: bool = True,
) -> Tuple[tarfile.TarInfo, Optional[bytes]]:
    """
    Find a single entry in a tar stream by path.

    The stream is consumed linearly up to (and including) the matching entry.
    The caller owns ``stream`` and is responsible for closing it.

    Args:
        stream: Readable binary stream positioned at the start of a tar archive
        path: Entry path to look up (normalized before comparison)
        with_contents: Read and return the entry's bytes

    Returns:
        Tuple of (TarInfo, contents); contents is None if with_contents is False

    Raises:
        OciEntryNotFound: If the scan completes without a matching entry
        OciSourceError: If reading the stream or the tar framing fails
    """
    target = normalize_path(path)
    logger.debug(f"Scanning archive for entry {path}")

    tar = open_tar_stream(stream)
    try:
        for member in iter_entries(tar):
            if normalize_path(member.name) != target:
                continue
            contents = read_member(tar, member) if with_contents else None
            return member, contents
    finally:
        tar.close()

    raise OciEntryNotFound(f"could not find entry {path!r} in archive", path=path)


def is_entry_not_exist(exc: BaseException) -> bool:
    """Return True if ``exc`` signals a missing archive entry."""
    return isinstance(exc, OciEntryNotFound)
