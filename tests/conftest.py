"""Root pytest configuration for oci-layout tests."""
import pytest

from oci_layout.blob import BytesBlob
from oci_layout.settings import Settings

from .helpers.fakes import TrackingBlob
from .helpers.layout_helpers import build_layout_archive, default_image


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep configuration environment variables out of the tests."""
    for key in (
        "OCI_LAYOUT_MANIFEST_MEDIA_TYPE",
        "OCI_LAYOUT_SPOOL_MAX_BYTES",
        "OCI_LAYOUT_COPY_CHUNK_SIZE",
        "OCI_LAYOUT_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings()


@pytest.fixture
def image():
    """Standard two-layer image (plain + gzip) labelled foo=bar."""
    return default_image()


@pytest.fixture
def archive(image):
    """Archive bytes for the standard image."""
    return build_layout_archive([image])


@pytest.fixture
def blob(archive):
    return BytesBlob(archive)


@pytest.fixture
def tracking_blob(archive):
    return TrackingBlob(archive)
