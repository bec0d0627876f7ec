"""
OCI layout archive builders for tests.

Provides utilities for assembling OCI layout tar archives in memory:
an oci-layout marker, index.json, manifests, image configs and layer blobs,
all addressed by their sha256 digests.
"""
from __future__ import annotations

import gzip
import hashlib
import io
import json
import tarfile
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from oci_layout.media_types import (
    DOCKER_IMAGE_CONFIG,
    DOCKER_LAYER_GZIP,
    DOCKER_LAYER_TAR,
    DOCKER_MANIFEST_V2,
)

OCI_LAYOUT_MARKER = b'{"imageLayoutVersion": "1.0.0"}'


def sha256_digest(data: bytes) -> str:
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def canonical_json(obj) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(',', ':')).encode()


def make_layer_tar(files: Dict[str, bytes]) -> bytes:
    """Create an uncompressed layer tar holding the given files."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.USTAR_FORMAT) as tar:
        for name, data in sorted(files.items()):
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def write_tar(entries: Iterable[Tuple[str, bytes]]) -> bytes:
    """Write (name, data) pairs as regular files into an in-memory tar, in order."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, data in entries:
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@dataclass
class FixtureLayer:
    """A layer as stored in the fixture archive."""
    content: bytes
    gzip: bool = False
    media_type: Optional[str] = None

    @property
    def stored(self) -> bytes:
        if self.gzip:
            return gzip.compress(self.content, mtime=0)
        return self.content

    @property
    def descriptor_media_type(self) -> str:
        if self.media_type is not None:
            return self.media_type
        return DOCKER_LAYER_GZIP if self.gzip else DOCKER_LAYER_TAR

    @property
    def diff_id(self) -> str:
        return sha256_digest(self.content)

    @property
    def digest(self) -> str:
        return sha256_digest(self.stored)


@dataclass
class FixtureImage:
    """An image: config with labels and diffIDs, manifest, and layers."""
    layers: List[FixtureLayer]
    labels: Optional[Dict[str, str]] = field(default_factory=dict)
    manifest_media_type: str = DOCKER_MANIFEST_V2
    architecture: str = "amd64"

    @property
    def diff_ids(self) -> List[str]:
        return [layer.diff_id for layer in self.layers]

    @property
    def config_bytes(self) -> bytes:
        return canonical_json({
            "architecture": self.architecture,
            "os": "linux",
            "config": {"Labels": self.labels},
            "rootfs": {"type": "layers", "diff_ids": self.diff_ids},
        })

    @property
    def manifest_bytes(self) -> bytes:
        return canonical_json({
            "schemaVersion": 2,
            "mediaType": self.manifest_media_type,
            "config": {
                "mediaType": DOCKER_IMAGE_CONFIG,
                "size": len(self.config_bytes),
                "digest": sha256_digest(self.config_bytes),
            },
            "layers": [
                {
                    "mediaType": layer.descriptor_media_type,
                    "size": len(layer.stored),
                    "digest": layer.digest,
                }
                for layer in self.layers
            ],
        })

    @property
    def manifest_digest(self) -> str:
        return sha256_digest(self.manifest_bytes)

    def blobs(self) -> Dict[str, bytes]:
        """All blobs of this image keyed by digest."""
        result = {
            self.manifest_digest: self.manifest_bytes,
            sha256_digest(self.config_bytes): self.config_bytes,
        }
        for layer in self.layers:
            result[layer.digest] = layer.stored
        return result


def blob_entry_name(digest: str, prefix: str = "") -> str:
    algorithm, encoded = digest.split(":", 1)
    return f"{prefix}blobs/{algorithm}/{encoded}"


def build_layout_archive(
    images: List[FixtureImage],
    *,
    include_marker: bool = True,
    omit_digests: Iterable[str] = (),
    prefix: str = "",
    index_bytes: Optional[bytes] = None,
    extra_entries: Iterable[Tuple[str, bytes]] = (),
) -> bytes:
    """
    Assemble an OCI layout tar archive.

    Args:
        images: Images to include; index.json lists their manifests in order
        include_marker: Write the oci-layout marker entry
        omit_digests: Blob digests to leave out of the archive
        prefix: Entry name prefix ("", "./" or "/")
        index_bytes: Raw index.json override
        extra_entries: Additional (name, data) entries appended at the end

    Returns:
        Archive bytes
    """
    omitted = set(omit_digests)
    entries: List[Tuple[str, bytes]] = []

    if include_marker:
        entries.append((f"{prefix}oci-layout", OCI_LAYOUT_MARKER))

    if index_bytes is None:
        index_bytes = canonical_json({
            "schemaVersion": 2,
            "manifests": [
                {
                    "mediaType": image.manifest_media_type,
                    "size": len(image.manifest_bytes),
                    "digest": image.manifest_digest,
                }
                for image in images
            ],
        })
    entries.append((f"{prefix}index.json", index_bytes))

    written = set()
    for image in images:
        for digest, data in image.blobs().items():
            if digest in omitted or digest in written:
                continue
            written.add(digest)
            entries.append((blob_entry_name(digest, prefix), data))

    entries.extend(extra_entries)
    return write_tar(entries)


def default_image() -> FixtureImage:
    """Two layers (plain tar, then gzip) and a single label foo=bar."""
    return FixtureImage(
        layers=[
            FixtureLayer(make_layer_tar({"etc/plain.txt": b"plain layer\n"})),
            FixtureLayer(make_layer_tar({"usr/bin/tool": b"#!/bin/sh\necho gz\n"}), gzip=True),
        ],
        labels={"foo": "bar"},
    )
