"""
Composite owned streams.

A layer stream handed to a caller sits on top of a chain of resources:
a decompressor over a tar entry over a streaming tar reader over the raw
blob stream. OwnedStream ties that chain to a single close() so the caller
releases everything with one call.
"""
from __future__ import annotations

import gzip
import io
import logging
import zlib
from typing import BinaryIO, Iterable, List, Optional, Protocol

from .archive import READ_ERRORS
from .errors import OciDecompressionError, OciSourceError

__all__ = ["Closable", "OwnedStream", "close_all"]

logger = logging.getLogger(__name__)

_DECOMPRESSION_ERRORS = (gzip.BadGzipFile, zlib.error, EOFError)


class Closable(Protocol):
    def close(self) -> None:
        ...


class OwnedStream(io.RawIOBase):
    """
    Readable stream that owns an ordered list of underlying resources.

    ``closers`` is given in wrap order: the innermost resource (the raw blob
    stream) first, the outermost wrapper last. close() releases them in
    reverse order, attempting every close even when an earlier one fails.
    The first failure is re-raised once all closes were attempted; later
    failures are logged and never replace it. Closing twice is a no-op.

    Read failures are raised as OciDecompressionError when the compressed
    data is bad and as OciSourceError otherwise.
    """

    def __init__(self, reader: BinaryIO, closers: Iterable[Closable], *, name: Optional[str] = None):
        super().__init__()
        self._reader = reader
        self._closers: List[Closable] = list(closers)
        self.name = name

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed stream")

    def readable(self) -> bool:
        return True

    def _read(self, size: int = -1) -> bytes:
        try:
            return self._reader.read(size)
        except _DECOMPRESSION_ERRORS as e:
            raise OciDecompressionError(f"failed to decompress {self.name}: {e}", path=self.name) from e
        except READ_ERRORS as e:
            raise OciSourceError(f"failed reading {self.name}: {e}") from e

    def readinto(self, b) -> int:
        self._check_open()
        data = self._read(len(b))
        n = len(data)
        b[:n] = data
        return n

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        if size is None or size < 0:
            size = -1
        return self._read(size)

    def readall(self) -> bytes:
        return self.read()

    def close(self) -> None:
        if self.closed:
            return

        try:
            first_error = close_all(self._closers, name=self.name)
        finally:
            self._closers = []
            super().close()

        if first_error is not None:
            raise first_error

    def __repr__(self) -> str:
        return f"OwnedStream(name={self.name!r}, closed={self.closed})"


def close_all(closers: Iterable[Closable], *, name: Optional[str] = None) -> Optional[Exception]:
    """
    Close resources in reverse wrap order, attempting every close.

    Args:
        closers: Resources in wrap order (innermost first)
        name: Label used when logging secondary close failures

    Returns:
        The first close failure, or None if every close succeeded
    """
    first_error: Optional[Exception] = None
    for closer in reversed(list(closers)):
        try:
            closer.close()
        except Exception as e:
            if first_error is None:
                first_error = e
            else:
                logger.warning(f"Additional error while closing {name or 'stream'}: {e}")
    return first_error
