"""
Pytest configuration and fixtures for PyFastImg test suite.

Shared fixtures, marker registration and synthetic image helpers used
across the test suite.
"""
import os
import sys

import numpy as np
import pytest


def pytest_configure(config):
    """Configure pytest with custom settings."""
    package_root = os.path.dirname(os.path.dirname(__file__))
    if package_root not in sys.path:
        sys.path.insert(0, package_root)
    for marker, doc in (
        ("unit", "fast tests of a single module"),
        ("integration", "tests running complete pipelines"),
        ("gpu", "tests using the Taichi device path"),
        ("slow", "tests taking more than a few seconds"),
        ("importtest", "import smoke tests"),
    ):
        config.addinivalue_line("markers", f"{marker}: {doc}")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        if "gpu" in item.keywords or "taichi" in item.name.lower():
            item.add_marker("slow")

        if "import" in item.name.lower() or "test_imports.py" in str(item.fspath):
            item.add_marker("importtest")


@pytest.fixture(autouse=True)
def fresh_graph():
    """Every test builds its nodes in a new default graph."""
    from pyfastimg.graph import reset_default_graph

    return reset_default_graph()


@pytest.fixture
def taichi_cpu():
    """
    Taichi runtime with an accelerator, the CPU arch when none is active.

    Skips the test when Taichi cannot be initialised.
    """
    from pyfastimg import runtime
    from pyfastimg.errors import TransferError

    if runtime.has_accelerator():
        return runtime
    try:
        runtime.init("cpu")
    except TransferError as e:
        pytest.skip(f"Taichi not available or initialization failed: {e}")
    return runtime


@pytest.fixture(scope="session")
def sample_image():
    """Reproducible float32 image with values in [0, 4095]."""
    from pyfastimg.bench.synthetic import random_image

    return random_image(32, 24, seed=7)


class ImageFactory:
    """Helper class creating small synthetic inputs."""

    @staticmethod
    def constant(nx=16, ny=12, value=4.0, dtype=np.float32):
        return np.full((ny, nx), value, dtype=dtype)

    @staticmethod
    def ramp_x(nx=16, ny=12):
        """f(x, y) = x."""
        return np.tile(np.arange(nx, dtype=np.float32), (ny, 1))

    @staticmethod
    def checkerboard(nx=64, ny=64, tile=8):
        from pyfastimg.bench.synthetic import checkerboard

        return checkerboard(nx, ny, tile)

    @staticmethod
    def packed(nx=16, ny=12, rgb=(10, 20, 30), alpha=0):
        """uint32 image of one packed colour."""
        from pyfastimg.filters.color import pack_array

        rgb = np.broadcast_to(np.asarray(rgb), (ny, nx, 3))
        return pack_array(rgb, alpha=alpha)


@pytest.fixture
def images():
    """Provide access to the synthetic image helpers."""
    return ImageFactory()
