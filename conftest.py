import numpy as np
import pytest

from sobel import SobelFilter


@pytest.fixture
def make_filter():
    """Build CPU-pinned filters so results do not depend on the host GPU."""

    def _make(config=None, **overrides):
        overrides.setdefault("device_preference", "cpu")
        return SobelFilter(config, **overrides)

    return _make


@pytest.fixture
def center_pixel_rgb():
    image = np.zeros((4, 4, 3), dtype=np.float32)
    image[2, 2, :] = 255.0
    return image


@pytest.fixture
def random_rgba():
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(9, 11, 4)).astype(np.float32)
