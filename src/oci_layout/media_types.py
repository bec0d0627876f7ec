"""
OCI layout media types and fixed archive paths.

Single source of truth for media types and well-known entry paths used
when reading OCI layout archives.
"""
from __future__ import annotations

# Manifest types - the reader selects docker v2 manifests from the index
DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"
DOCKER_MANIFEST_LIST_V2 = "application/vnd.docker.distribution.manifest.list.v2+json"
OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
OCI_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"

# Config types
DOCKER_IMAGE_CONFIG = "application/vnd.docker.container.image.v1+json"
OCI_IMAGE_CONFIG = "application/vnd.oci.image.config.v1+json"

# Layer types
DOCKER_LAYER_GZIP = "application/vnd.docker.image.rootfs.diff.tar.gzip"
DOCKER_LAYER_TAR = "application/vnd.docker.image.rootfs.diff.tar"
OCI_IMAGE_LAYER_TAR = "application/vnd.oci.image.layer.v1.tar"

# Fixed entry paths inside the archive
OCI_LAYOUT_PATH = "/oci-layout"
INDEX_PATH = "/index.json"
BLOBS_ROOT = "/blobs"

# Layers whose media type carries this suffix are stored gzip-compressed
GZIP_SUFFIX = ".gzip"


def is_gzip_media_type(media_type: str) -> bool:
    """Return True if a layer of this media type is stored gzip-compressed."""
    return media_type.endswith(GZIP_SUFFIX)


__all__ = [
    "DOCKER_MANIFEST_V2",
    "DOCKER_MANIFEST_LIST_V2",
    "OCI_IMAGE_MANIFEST",
    "OCI_IMAGE_INDEX",
    "DOCKER_IMAGE_CONFIG",
    "OCI_IMAGE_CONFIG",
    "DOCKER_LAYER_GZIP",
    "DOCKER_LAYER_TAR",
    "OCI_IMAGE_LAYER_TAR",
    "OCI_LAYOUT_PATH",
    "INDEX_PATH",
    "BLOBS_ROOT",
    "GZIP_SUFFIX",
    "is_gzip_media_type",
]
