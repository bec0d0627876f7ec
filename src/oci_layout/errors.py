"""
OCI layout error classes.

Provides a clear taxonomy of errors that can occur while reading an OCI
layout archive. Lower-level failures (I/O, tar framing, JSON decoding,
model validation) are wrapped into these classes with their cause chained.
"""
from __future__ import annotations

from typing import Optional


class OciLayoutError(Exception):
    """
    Base class for all OCI layout errors.
    """
    pass


class OciSourceError(OciLayoutError):
    """
    The archive could not be opened or read.

    Raised when:
    - Blob.open() fails
    - Reading the archive stream fails mid-scan
    - The tar framing is corrupt or the stream is not a tar archive
    """
    pass


class OciMalformedDocument(OciLayoutError):
    """
    A JSON document inside the archive failed to decode or validate.

    Raised when:
    - index.json, a manifest or an image config is not valid JSON
    - The decoded JSON does not have the expected structure
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class OciEntryNotFound(OciLayoutError):
    """
    No archive entry exists at the requested path.

    Archive lookup raises this distinctly from OciSourceError so callers
    can treat absence as an answer rather than a failure.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class OciManifestNotFound(OciLayoutError):
    """
    The index holds no manifest descriptor of the expected media type.
    """

    def __init__(self, message: str, media_type: Optional[str] = None):
        super().__init__(message)
        self.media_type = media_type


class OciLayerNotFound(OciLayoutError):
    """
    A requested diffID is not part of the image config's rootfs.
    """

    def __init__(self, message: str, diff_id: Optional[str] = None):
        super().__init__(message)
        self.diff_id = diff_id


class OciLayerBlobNotFound(OciEntryNotFound):
    """
    The blob path derived from a layer descriptor is missing from the archive.
    """
    pass


class OciDecompressionError(OciLayoutError):
    """
    A layer declared as gzip-compressed is not a gzip stream.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


__all__ = [
    "OciLayoutError",
    "OciSourceError",
    "OciMalformedDocument",
    "OciEntryNotFound",
    "OciManifestNotFound",
    "OciLayerNotFound",
    "OciLayerBlobNotFound",
    "OciDecompressionError",
]
