"""
Read-only access to container images packaged as OCI layout archives.

An OCI layout archive is a single tar holding an ``oci-layout`` marker, an
``index.json``, and content-addressed blobs under ``blobs/<alg>/<hex>``:
the manifest, the image configuration and the filesystem layers.

Design Notes: Independent Scans

The archive is never seeked. Construction performs three independent
open-and-scan passes (index, manifest, config) and every get_layer() call
performs one more. Nothing is cached between passes; construction happens
once per inspection and each layer is typically read once per consumer.
"""
from __future__ import annotations

import gzip
import logging
import tarfile
from contextlib import closing
from typing import BinaryIO, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .archive import (
    READ_ERRORS,
    is_entry_not_exist,
    iter_entries,
    normalize_path,
    open_tar_stream,
    read_tar_entry,
)
from .blob import Blob
from .errors import (
    OciDecompressionError,
    OciLayerBlobNotFound,
    OciLayerNotFound,
    OciLayoutError,
    OciMalformedDocument,
    OciManifestNotFound,
    OciSourceError,
)
from .media_types import INDEX_PATH, OCI_LAYOUT_PATH, is_gzip_media_type
from .models import Descriptor, Image, ImageConfig, Index, Manifest, path_from_descriptor
from .settings import Settings
from .streams import OwnedStream, close_all

__all__ = ["OciLayoutPackage", "is_oci_layout_blob", "config_from_oci_layout_blob"]

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def is_oci_layout_blob(blob: Blob) -> bool:
    """
    Check whether a blob holds an OCI layout archive.

    A blob without the ``oci-layout`` marker entry is a normal negative
    answer, not an error.

    Args:
        blob: Archive source

    Returns:
        True if the marker entry exists, False otherwise

    Raises:
        OciSourceError: If the blob cannot be opened or is not a readable tar
    """
    with closing(_open_blob(blob, "layout detection")) as stream:
        try:
            read_tar_entry(stream, OCI_LAYOUT_PATH, with_contents=False)
        except OciLayoutError as e:
            if not is_entry_not_exist(e):
                raise
            logger.debug(f"No {OCI_LAYOUT_PATH} entry in {blob!r}")
            return False
    return True


def config_from_oci_layout_blob(blob: Blob, *, settings: Optional[Settings] = None) -> ImageConfig:
    """Read just the image configuration (labels, entrypoint, ...) of an OCI layout blob."""
    return OciLayoutPackage.from_blob(blob, settings=settings).image.config


class OciLayoutPackage:
    """
    Queryable view of one image inside an OCI layout archive.

    Holds the parsed manifest and image configuration plus a reference to
    the blob it was read from. Nothing is mutated after construction, so
    label lookups and layer extraction may run concurrently from several
    threads as long as the blob supports concurrent open() calls.
    """

    def __init__(self, image: Image, manifest: Manifest, blob: Blob):
        self._image = image
        self._manifest = manifest
        self._blob = blob

    @classmethod
    def from_blob(cls, blob: Blob, *, settings: Optional[Settings] = None) -> OciLayoutPackage:
        """
        Resolve index -> manifest -> image config from an OCI layout blob.

        Args:
            blob: Archive source
            settings: Optional settings (manifest media type to select)

        Returns:
            OciLayoutPackage ready for queries

        Raises:
            OciSourceError: If the blob cannot be opened or read
            OciEntryNotFound: If index.json, the manifest or the config is missing
            OciMalformedDocument: If one of those documents fails to parse
            OciManifestNotFound: If no index entry has the expected media type
        """
        settings = settings or Settings()

        index = _unmarshal_from_blob(blob, INDEX_PATH, Index)

        manifest_descriptor = index.find_manifest(settings.manifest_media_type)
        if manifest_descriptor is None:
            raise OciManifestNotFound(
                f"unable to find manifest with media type {settings.manifest_media_type!r} in {INDEX_PATH}",
                media_type=settings.manifest_media_type,
            )
        logger.debug(f"Selected manifest {manifest_descriptor.digest}")

        manifest = _unmarshal_from_blob(blob, path_from_descriptor(manifest_descriptor), Manifest)
        image = _unmarshal_from_blob(blob, path_from_descriptor(manifest.config), Image)

        logger.info(f"Loaded OCI layout image with {len(manifest.layers)} layers "
                    f"(manifest {manifest_descriptor.digest})")
        return cls(image=image, manifest=manifest, blob=blob)

    @property
    def image(self) -> Image:
        return self._image

    @property
    def manifest(self) -> Manifest:
        return self._manifest

    @property
    def diff_ids(self) -> List[str]:
        return list(self._image.rootfs.diff_ids)

    def label(self, name: str) -> str:
        """Return the value of label ``name``, or "" if the image has no such label."""
        return self._image.config.labels.get(name, "")

    def labels(self) -> Dict[str, str]:
        return dict(self._image.config.labels)

    def layer_descriptor(self, diff_id: str) -> Descriptor:
        """
        Translate a diffID to its manifest layer descriptor.

        The config's rootfs diffIDs and the manifest's layers are aligned
        index for index. This is the only place that alignment is relied on;
        it is not cross-checked against content.

        Raises:
            OciLayerNotFound: If diff_id is not in the rootfs
        """
        try:
            position = self._image.rootfs.diff_ids.index(diff_id)
        except ValueError:
            raise OciLayerNotFound(f"layer {diff_id!r} not found in rootfs", diff_id=diff_id) from None
        return self._manifest.layers[position]

    def get_layer(self, diff_id: str) -> OwnedStream:
        """
        Open the uncompressed content of the layer identified by ``diff_id``.

        Scans a freshly opened archive stream for the layer's blob. Layers
        whose media type ends in ".gzip" are decompressed on the fly.

        The caller owns the returned stream and must close it; closing it
        releases the decompressor, the tar reader and the blob stream.

        Args:
            diff_id: Layer identifier from the image config's rootfs

        Returns:
            Readable stream of the uncompressed layer bytes

        Raises:
            OciLayerNotFound: If diff_id is not in the rootfs
            OciLayerBlobNotFound: If the layer blob is missing from the archive
            OciDecompressionError: If a gzip layer is not a gzip stream
            OciSourceError: If the archive cannot be opened or read
        """
        descriptor = self.layer_descriptor(diff_id)
        layer_path = path_from_descriptor(descriptor)
        target = normalize_path(layer_path)

        blob_stream = _open_blob(self._blob, f"layer {diff_id}")
        closers: list = [blob_stream]
        try:
            tar = open_tar_stream(blob_stream)
            closers.append(tar)

            for member in iter_entries(tar):
                if normalize_path(member.name) != target:
                    continue

                reader = _extract(tar, member)
                closers.append(reader)
                if is_gzip_media_type(descriptor.media_type):
                    reader = _gunzip(reader, layer_path)
                    closers.append(reader)

                logger.debug(f"Opened layer {diff_id} at {layer_path}")
                return OwnedStream(reader, closers, name=layer_path)

            raise OciLayerBlobNotFound(f"layer blob {layer_path!r} not found", path=layer_path)
        except BaseException:
            err = close_all(closers, name=layer_path)
            if err is not None:
                logger.warning(f"Failed to release archive stream for {layer_path}: {err}")
            raise

    def __repr__(self) -> str:
        return f"OciLayoutPackage(blob={self._blob!r}, layers={len(self._manifest.layers)})"


def _open_blob(blob: Blob, stage: str) -> BinaryIO:
    try:
        return blob.open()
    except OSError as e:
        raise OciSourceError(f"failed to open blob for {stage}: {e}") from e


def _extract(tar: tarfile.TarFile, member: tarfile.TarInfo) -> BinaryIO:
    try:
        reader = tar.extractfile(member)
    except READ_ERRORS as e:
        raise OciSourceError(f"failed to open tar entry {member.name!r}: {e}") from e
    if reader is None:
        raise OciSourceError(f"tar entry {member.name!r} has no content")
    return reader


def _gunzip(reader: BinaryIO, path: str) -> BinaryIO:
    # GzipFile parses its header lazily; check the magic so a bad layer fails here
    try:
        head = reader.peek(2)[:2]
    except READ_ERRORS as e:
        raise OciSourceError(f"failed to read layer blob {path!r}: {e}") from e
    if head != b"\x1f\x8b":
        raise OciDecompressionError(f"layer blob {path!r} is not gzip-compressed", path=path)
    return gzip.GzipFile(fileobj=reader, mode="rb")


def _unmarshal_from_blob(blob: Blob, path: str, model: Type[M]) -> M:
    with closing(_open_blob(blob, path)) as stream:
        try:
            _, contents = read_tar_entry(stream, path)
        except OciSourceError as e:
            raise OciSourceError(f"failed reading {path}: {e}") from e

    try:
        return model.model_validate_json(contents)
    except ValidationError as e:
        raise OciMalformedDocument(f"failed to parse {path}: {e}", path=path) from e
