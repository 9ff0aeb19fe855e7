import pytest


@pytest.fixture
def download_dir(tmp_path):
    return tmp_path / "downloads"


@pytest.fixture
def payload():
    """300,000 bytes, splits into three 100,000 byte chunks."""
    return bytes(range(250)) * 1200
