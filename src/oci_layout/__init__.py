"""
Read-only accessor for container images packaged as OCI layout archives.
"""
from .blob import Blob, BytesBlob, DirectoryBlob, FileBlob, blob_from_path
from .errors import (
    OciDecompressionError,
    OciEntryNotFound,
    OciLayerBlobNotFound,
    OciLayerNotFound,
    OciLayoutError,
    OciMalformedDocument,
    OciManifestNotFound,
    OciSourceError,
)
from .package import OciLayoutPackage, config_from_oci_layout_blob, is_oci_layout_blob
from .settings import Settings, create_settings_from_env

__all__ = [
    "Blob",
    "BytesBlob",
    "DirectoryBlob",
    "FileBlob",
    "blob_from_path",
    "OciLayoutError",
    "OciSourceError",
    "OciMalformedDocument",
    "OciEntryNotFound",
    "OciManifestNotFound",
    "OciLayerNotFound",
    "OciLayerBlobNotFound",
    "OciDecompressionError",
    "OciLayoutPackage",
    "config_from_oci_layout_blob",
    "is_oci_layout_blob",
    "Settings",
    "create_settings_from_env",
]
