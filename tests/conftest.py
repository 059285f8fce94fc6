"""Pytest configuration and fixtures."""

from collections.abc import Callable

import numpy as np
import pytest

from hoopscore.core.config import reset_config
from hoopscore.core.models import Frame
from tests import synthetic


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (real subprocess / video codec tests)",
    )


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (run with --run-slow)")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is specified."""
    if config.getoption("--run-slow"):
        return

    skip_slow = pytest.mark.skip(reason="Need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Never leak a global config between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def blank_image() -> Callable[..., np.ndarray]:
    """Factory for black BGR images."""
    return synthetic.blank


@pytest.fixture
def draw_ball() -> Callable[..., np.ndarray]:
    """Draw a filled orange ball at (cx, cy)."""
    return synthetic.draw_ball


@pytest.fixture
def draw_players() -> Callable[..., np.ndarray]:
    """Draw jersey rectangles."""
    return synthetic.draw_players


@pytest.fixture
def make_frame() -> Callable[..., Frame]:
    """Wrap an image in a Frame at a given index."""

    def _make(index: int, image: np.ndarray | None = None, fps: float = 30.0) -> Frame:
        if image is None:
            image = synthetic.blank()
        return Frame(index=index, game_time=index / fps, image=image, original=image)

    return _make
