# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import pytest

from imgcache.core.fetch.cache import DiskStorageLocator
from tests.utils import (
    DEFAULT_URL,
    FakeNetwork,
    make_policy,
    make_resolver,
    png_bytes as _make_png,
    write_image as _write_image,
)


# -------- Storage fixtures --------
@pytest.fixture
def locator(tmp_path: Path) -> DiskStorageLocator:
    return DiskStorageLocator(tmp_path / "primary", tmp_path / "secondary", supports_mtime_update=True)


@pytest.fixture
def policy(tmp_path: Path):
    return make_policy(tmp_path)


# -------- Network fixtures --------
@pytest.fixture
def fake_network_factory():
    """
    Callable factory for FakeNetwork.

    Usage:
        net = fake_network_factory({"http://host/a.png": (200, data, None)})
        net = fake_network_factory(default=(304, b"", None))
    """

    def _factory(routes=None, **kwargs):
        return FakeNetwork(routes, **kwargs)

    return _factory


@pytest.fixture
def ok_network(png_bytes):
    """Network that answers DEFAULT_URL with a 64x32 PNG."""
    return FakeNetwork({DEFAULT_URL: (200, png_bytes(64, 32), None)})


# -------- Resolver fixtures --------
@pytest.fixture
def resolver_factory(tmp_path: Path):
    """
    Callable factory for ImageResolver rooted in tmp_path.

    Usage:
        resolver = resolver_factory(network, allow_network=False)
    """

    def _factory(network=None, **overrides):
        return make_resolver(tmp_path, network, **overrides)

    return _factory


# -------- Image fixtures --------
@pytest.fixture
def png_bytes():
    """
    Fixture that returns a callable to generate PNG bytes.
    Usage:
        data = png_bytes(64, 64)
    """
    return _make_png


@pytest.fixture
def write_image():
    """
    Fixture that returns a callable writing an image file.
    Usage:
        write_image(path, 640, 480, fmt="JPEG", age_s=3600)
    """
    return _write_image


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks integration tests")
