"""
Data models for the documents stored in an OCI layout archive.

These Pydantic models decode index.json, image manifests and image
configurations. They are read-only views: unknown fields are ignored and
both the on-disk camelCase names and snake_case names are accepted.
"""
from __future__ import annotations

import posixpath
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .media_types import BLOBS_ROOT

__all__ = [
    "Descriptor",
    "Index",
    "Manifest",
    "ImageConfig",
    "RootFS",
    "Image",
    "path_from_descriptor",
]

# algorithm ":" encoded, per the OCI descriptor grammar
_DIGEST_RE = re.compile(r"^[a-z0-9]+(?:[+._-][a-z0-9]+)*:[a-zA-Z0-9=_-]+$")


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Descriptor(_Document):
    """Content descriptor: a media type plus an algorithm-tagged digest."""
    media_type: str = Field(default="", alias="mediaType", description="Media type of the referenced content")
    digest: str = Field(..., description="Content digest, e.g. sha256:<hex>")
    size: int = Field(default=0, ge=0, description="Size of the referenced content in bytes")
    annotations: Dict[str, str] = Field(default_factory=dict, description="Arbitrary annotations")

    @field_validator("digest")
    @classmethod
    def validate_digest(cls, v: str) -> str:
        if not _DIGEST_RE.match(v):
            raise ValueError(f"Invalid digest format: {v!r}")
        return v

    @field_validator("annotations", mode="before")
    @classmethod
    def none_annotations(cls, v):
        return v or {}

    @property
    def algorithm(self) -> str:
        return self.digest.split(":", 1)[0]

    @property
    def encoded(self) -> str:
        return self.digest.split(":", 1)[1]

    def blob_path(self) -> str:
        """Archive path of the referenced blob: /blobs/<algorithm>/<encoded>."""
        return posixpath.join(BLOBS_ROOT, self.algorithm, self.encoded)


class Index(_Document):
    """
    Top-level image index (index.json).

    Holds an ordered sequence of manifest descriptors.
    """
    schema_version: Optional[int] = Field(default=None, alias="schemaVersion")
    media_type: Optional[str] = Field(default=None, alias="mediaType")
    manifests: List[Descriptor] = Field(default_factory=list)

    @field_validator("manifests", mode="before")
    @classmethod
    def none_manifests(cls, v):
        return v or []

    def find_manifest(self, media_type: str) -> Optional[Descriptor]:
        """
        Return the first manifest descriptor with the given media type.

        Later descriptors with the same media type are ignored.

        Args:
            media_type: Media type to match exactly

        Returns:
            Matching descriptor, or None if the index has none
        """
        for descriptor in self.manifests:
            if descriptor.media_type == media_type:
                return descriptor
        return None


class Manifest(_Document):
    """Image manifest: one config descriptor and ordered layer descriptors."""
    schema_version: Optional[int] = Field(default=None, alias="schemaVersion")
    media_type: Optional[str] = Field(default=None, alias="mediaType")
    config: Descriptor
    layers: List[Descriptor] = Field(default_factory=list)

    @field_validator("layers", mode="before")
    @classmethod
    def none_layers(cls, v):
        return v or []


class ImageConfig(_Document):
    """Execution parameters of an image, including its labels."""
    user: Optional[str] = Field(default=None, alias="User")
    env: List[str] = Field(default_factory=list, alias="Env")
    entrypoint: List[str] = Field(default_factory=list, alias="Entrypoint")
    cmd: List[str] = Field(default_factory=list, alias="Cmd")
    working_dir: Optional[str] = Field(default=None, alias="WorkingDir")
    labels: Dict[str, str] = Field(default_factory=dict, alias="Labels")

    @field_validator("env", "entrypoint", "cmd", mode="before")
    @classmethod
    def none_lists(cls, v):
        return v or []

    @field_validator("labels", mode="before")
    @classmethod
    def none_labels(cls, v):
        # docker writes "Labels": null for images without labels
        return v or {}


class RootFS(_Document):
    """Root filesystem: ordered diffIDs of the uncompressed layers."""
    type: str = Field(default="layers")
    diff_ids: List[str] = Field(default_factory=list)

    @field_validator("diff_ids", mode="before")
    @classmethod
    def none_diff_ids(cls, v):
        return v or []


class Image(_Document):
    """Image configuration document referenced by the manifest's config descriptor."""
    architecture: Optional[str] = None
    os: Optional[str] = None
    created: Optional[str] = None
    config: ImageConfig = Field(default_factory=ImageConfig)
    rootfs: RootFS = Field(default_factory=RootFS)

    @field_validator("config", "rootfs", mode="before")
    @classmethod
    def none_sections(cls, v):
        return v if v is not None else {}


def path_from_descriptor(descriptor: Descriptor) -> str:
    """Map a descriptor's digest to its archive path."""
    return descriptor.blob_path()
