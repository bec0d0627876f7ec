"""
Test Operations facade wiring.

Validates that the Operations facade opens sources by path or Blob and
delegates to the OCI layout reader.
"""
from __future__ import annotations

import io

import pytest

from oci_layout.blob import BytesBlob
from oci_layout.errors import OciLayerNotFound
from oci_layout.operations import Operations
from oci_layout.settings import Settings

from tests.helpers.fakes import TrackingBlob
from tests.helpers.layout_helpers import build_layout_archive, sha256_digest, write_tar


@pytest.fixture
def ops():
    return Operations(settings=Settings(copy_chunk_size=16))


class TestOperationsFacade:
    """Test Operations facade orchestration."""

    def test_loads_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("OCI_LAYOUT_COPY_CHUNK_SIZE", "99")
        assert Operations().settings.copy_chunk_size == 99

    def test_detect(self, ops, blob):
        assert ops.detect(blob) is True
        assert ops.detect(BytesBlob(write_tar([("x", b"y")]))) is False

    def test_detect_by_path(self, ops, tmp_path, archive):
        path = tmp_path / "image.tar"
        path.write_bytes(archive)
        assert ops.detect(str(path)) is True

    def test_inspect(self, ops, blob, image):
        summary = ops.inspect(blob)
        assert summary.labels == {"foo": "bar"}
        assert summary.architecture == "amd64"
        assert summary.os == "linux"
        assert summary.config_digest == sha256_digest(image.config_bytes)
        assert [layer.diff_id for layer in summary.layers] == image.diff_ids
        assert [layer.digest for layer in summary.layers] == [layer.digest for layer in image.layers]

    def test_label(self, ops, blob):
        assert ops.label(blob, "foo") == "bar"
        assert ops.label(blob, "missing") == ""

    def test_extract_layer_in_chunks(self, ops, tracking_blob, image):
        out = io.BytesIO()
        written = ops.extract_layer(tracking_blob, image.diff_ids[1], out)
        assert out.getvalue() == image.layers[1].content
        assert written == len(image.layers[1].content)
        assert tracking_blob.open_streams == []

    def test_extract_layer_to_file(self, ops, tmp_path, blob, image):
        dest = tmp_path / "layer.tar"
        written = ops.extract_layer_to_file(blob, image.diff_ids[0], dest)
        assert dest.read_bytes() == image.layers[0].content
        assert written == len(image.layers[0].content)

    def test_extract_unknown_layer_leaves_no_file(self, ops, tmp_path, blob):
        dest = tmp_path / "layer.tar"
        with pytest.raises(OciLayerNotFound):
            ops.extract_layer_to_file(blob, sha256_digest(b"nope"), dest)
        assert list(tmp_path.iterdir()) == []
