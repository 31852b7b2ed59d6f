# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""One-shot helpers around SobelFilter."""
from __future__ import annotations

from typing import Any, Callable, Optional

from .config import SobelConfig
from .filter import SobelFilter
from .io import PixelBuffer
from .processors import OutputFormat

EDGE_DEFAULTS = {
    "kernel_size": 3,
    "output": OutputFormat.NORMALIZED,
    "normalization_range": (0.0, 255.0),
    "normalize_output_for_display": False,
}


def detect_edges(image, use_grayscale: bool = True, *, device_preference: Optional[str] = None):
    """Detect edges with a 3x3 kernel, normalized magnitude in [0, 255].

    ``image`` may be a raster (numpy array or torch tensor) or a ``PixelBuffer``;
    the result has the same kind, and pixel buffers keep their channel layout.
    """
    sobel_filter = SobelFilter(grayscale=use_grayscale, device_preference=device_preference, **EDGE_DEFAULTS)
    if isinstance(image, PixelBuffer):
        return sobel_filter.apply_to_pixel_buffer(image, out_channels=image.channels)
    return sobel_filter.apply_to_tensor(image)


def create_filter_factory(config: Optional[SobelConfig] = None, **defaults: Any) -> Callable[..., SobelFilter]:
    """Return a callable building filters from preset defaults plus per-call overrides.

    The defaults are validated once here, so a bad preset fails at factory creation.
    """
    base = (config or SobelConfig()).updated(**{k: v for k, v in defaults.items() if k != "device_preference"})
    device_preference = defaults.get("device_preference")

    def create_filter(**overrides: Any) -> SobelFilter:
        preference = overrides.pop("device_preference", device_preference)
        return SobelFilter(base, device_preference=preference, **overrides)

    return create_filter


__all__ = ["EDGE_DEFAULTS", "detect_edges", "create_filter_factory"]
