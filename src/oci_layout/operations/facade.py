"""
Operations Facade - Application service layer.

Provides a clean interface between the CLI and the OCI layout reader,
keeping CLI commands thin and testable.
"""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Union

from ..blob import Blob, blob_from_path
from ..package import OciLayoutPackage, is_oci_layout_blob
from ..settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerInfo:
    """One row of the layer listing: diffID aligned with its manifest descriptor."""
    diff_id: str
    digest: str
    media_type: str
    size: int


@dataclass(frozen=True)
class ImageSummary:
    """Everything `inspect` shows about an image."""
    source: str
    config_digest: str
    architecture: Optional[str]
    os: Optional[str]
    labels: Dict[str, str]
    layers: List[LayerInfo]


class Operations:
    """
    Application service facade for CLI operations.

    One method per CLI verb. The facade holds only the settings; every call
    opens its own blob and reader, and exceptions bubble up for central
    mapping to exit codes.
    """

    def __init__(self, settings: Optional[Settings] = None):
        if settings is None:
            from ..settings import create_settings_from_env
            settings = create_settings_from_env()
        self.settings = settings

    def _blob(self, source: Union[str, Path, Blob]) -> Blob:
        if isinstance(source, (str, Path)):
            return blob_from_path(source, self.settings)
        return source

    def open_package(self, source: Union[str, Path, Blob]) -> OciLayoutPackage:
        return OciLayoutPackage.from_blob(self._blob(source), settings=self.settings)

    def detect(self, source: Union[str, Path, Blob]) -> bool:
        return is_oci_layout_blob(self._blob(source))

    def inspect(self, source: Union[str, Path, Blob]) -> ImageSummary:
        """
        Summarize labels and layers of an image.

        Layers are listed by zipping the rootfs diffIDs with the manifest
        layers; a diffID without a manifest layer is not listed.
        """
        package = self.open_package(source)
        layers = [
            LayerInfo(
                diff_id=diff_id,
                digest=descriptor.digest,
                media_type=descriptor.media_type,
                size=descriptor.size,
            )
            for diff_id, descriptor in zip(package.diff_ids, package.manifest.layers)
        ]
        return ImageSummary(
            source=str(source),
            config_digest=package.manifest.config.digest,
            architecture=package.image.architecture,
            os=package.image.os,
            labels=package.labels(),
            layers=layers,
        )

    def label(self, source: Union[str, Path, Blob], name: str) -> str:
        return self.open_package(source).label(name)

    def extract_layer(self, source: Union[str, Path, Blob], diff_id: str, out: BinaryIO) -> int:
        """
        Copy the uncompressed bytes of one layer into ``out``.

        Args:
            source: Archive path, layout directory or Blob
            diff_id: Layer identifier from the image config's rootfs
            out: Writable binary stream

        Returns:
            Number of bytes written
        """
        package = self.open_package(source)
        written = 0
        with package.get_layer(diff_id) as layer:
            while True:
                chunk = layer.read(self.settings.copy_chunk_size)
                if not chunk:
                    break
                out.write(chunk)
                written += len(chunk)
        logger.debug(f"Copied {written} bytes of layer {diff_id}")
        return written

    def extract_layer_to_file(self, source: Union[str, Path, Blob], diff_id: str, dest: Union[str, Path]) -> int:
        """Copy one layer to ``dest``, writing to a temporary name first."""
        dest = Path(dest)
        tmp = dest.with_name(dest.name + ".tmp")
        try:
            with open(tmp, "wb") as out:
                written = self.extract_layer(source, diff_id, out)
            shutil.move(str(tmp), str(dest))
        except BaseException:
            if tmp.exists():
                tmp.unlink()
            raise
        return written
