"""
Blob sources for OCI layout archives.

A Blob is anything that can be opened repeatedly to produce an independent
byte stream of a full tar archive, positioned at its start. The reader
never seeks these streams; it always scans them linearly.
"""
from __future__ import annotations

import gzip
import io
import logging
import os
import tarfile
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Protocol, Tuple, Union, runtime_checkable

import zstandard as zstd

from .settings import Settings

__all__ = ["Blob", "BytesBlob", "FileBlob", "DirectoryBlob", "blob_from_path"]

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"


@runtime_checkable
class Blob(Protocol):
    """Protocol for archive sources."""

    def open(self) -> BinaryIO:
        """
        Open a fresh stream over the full archive.

        Every call must return a stream that is independent of all streams
        returned by earlier calls, with its own read position.

        Returns:
            Readable, closable binary stream positioned at the archive start

        Raises:
            OSError: If the underlying content cannot be opened
        """
        ...


class BytesBlob:
    """In-memory archive source."""

    def __init__(self, data: bytes):
        self._data = bytes(data)

    def open(self) -> BinaryIO:
        return io.BytesIO(self._data)

    def __len__(self) -> int:
        return len(self._data)


class FileBlob:
    """
    Archive file on disk.

    The file may be a plain tar or a gzip- or zstd-compressed tar; the
    compression is detected from the leading magic bytes, not the file name.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def open(self) -> BinaryIO:
        fh = open(self.path, "rb")
        try:
            magic = fh.read(len(ZSTD_MAGIC))
            fh.seek(0)
            if magic.startswith(GZIP_MAGIC):
                logger.debug(f"Opening {self.path} as gzip-compressed archive")
                fh.close()
                return gzip.open(self.path, "rb")
            if magic == ZSTD_MAGIC:
                logger.debug(f"Opening {self.path} as zstd-compressed archive")
                return zstd.ZstdDecompressor().stream_reader(fh, read_across_frames=True, closefd=True)
        except Exception:
            fh.close()
            raise
        return fh

    def __repr__(self) -> str:
        return f"FileBlob({str(self.path)!r})"


class DirectoryBlob:
    """
    OCI layout directory on disk.

    Each open() packs the directory tree into a tar archive held in a spooled
    temporary file. Entries are sorted by archive name and carry canonical
    headers so every open() yields the same bytes for an unchanged tree.
    """

    def __init__(self, path: Union[str, Path], *, spool_max_bytes: int = 64 * 1024 * 1024):
        self.path = Path(path)
        self.spool_max_bytes = spool_max_bytes

    def open(self) -> BinaryIO:
        if not self.path.is_dir():
            raise NotADirectoryError(f"OCI layout directory does not exist: {self.path}")

        spool = tempfile.SpooledTemporaryFile(max_size=self.spool_max_bytes)
        try:
            with tarfile.open(fileobj=spool, mode="w", format=tarfile.USTAR_FORMAT) as tar:
                for entry_path, arcname in _iter_entries_sorted(self.path):
                    tarinfo = tar.gettarinfo(str(entry_path), arcname=arcname)
                    _apply_canonical_headers(tarinfo)
                    if tarinfo.isreg():
                        with open(entry_path, "rb") as entry_file:
                            tar.addfile(tarinfo, entry_file)
                    else:
                        tar.addfile(tarinfo)
            spool.seek(0)
        except Exception:
            spool.close()
            raise
        return spool

    def __repr__(self) -> str:
        return f"DirectoryBlob({str(self.path)!r})"


def _iter_entries_sorted(src_dir: Path) -> Iterator[Tuple[Path, str]]:
    """Yield (filesystem_path, archive_name) pairs for files and directories, sorted by archive name."""
    entries = []
    for root, dirs, files in os.walk(src_dir):
        root_path = Path(root)
        rel_root = root_path.relative_to(src_dir)
        if rel_root != Path("."):
            entries.append((root_path, rel_root.as_posix() + "/"))
        for file_name in files:
            file_path = root_path / file_name
            entries.append((file_path, file_path.relative_to(src_dir).as_posix()))

    entries.sort(key=lambda x: x[1])
    yield from entries


def _apply_canonical_headers(tarinfo: tarfile.TarInfo) -> None:
    tarinfo.uid = 0
    tarinfo.gid = 0
    tarinfo.uname = ""
    tarinfo.gname = ""
    tarinfo.mtime = 0
    if tarinfo.isdir():
        tarinfo.mode = 0o755
    elif tarinfo.isreg():
        tarinfo.mode = 0o755 if tarinfo.mode & 0o100 else 0o644


def blob_from_path(path: Union[str, Path], settings: Optional[Settings] = None) -> Blob:
    """
    Create the appropriate Blob for a filesystem path.

    Args:
        path: Archive file (.tar, .tar.gz, .tar.zst) or OCI layout directory
        settings: Optional settings (spool threshold for directories)

    Returns:
        DirectoryBlob for directories, FileBlob otherwise

    Raises:
        FileNotFoundError: If path does not exist
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"No such file or directory: {p}")
    if p.is_dir():
        spool_max_bytes = settings.spool_max_bytes if settings else 64 * 1024 * 1024
        return DirectoryBlob(p, spool_max_bytes=spool_max_bytes)
    return FileBlob(p)
