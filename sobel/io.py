# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Raster materialization and pixel-buffer conversion helpers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import torch

from .channels import SUPPORTED_CHANNELS, expand_to_rgba, validate_channel_count
from .common import ShapeError
from .normalize import normalize_tensor

logger = logging.getLogger(__name__)


@dataclass
class PixelBuffer:
    """Flat, row-major, channel-interleaved 8-bit pixels."""

    data: np.ndarray
    width: int
    height: int
    channels: int = 4

    def __post_init__(self):
        self.data = np.ascontiguousarray(self.data).reshape(-1)
        self.width = int(self.width)
        self.height = int(self.height)
        self.channels = validate_channel_count(self.channels)
        expected = self.width * self.height * self.channels
        if self.data.size != expected:
            raise ShapeError(f"Expected array of length {expected} but got {self.data.size}")

    def to_array(self) -> np.ndarray:
        """View the buffer as [height, width, channels]."""
        return self.data.reshape(self.height, self.width, self.channels)


def pixels_to_raster(pixels, width: int, height: int, channels: int = 4) -> torch.Tensor:
    """Reshape flat pixel data into a float32 [height, width, channels] tensor."""
    channels = validate_channel_count(channels)
    width, height = int(width), int(height)
    if width <= 0 or height <= 0:
        raise ShapeError(f"Width and height must be positive, got {width}x{height}")
    flat = np.asarray(pixels).reshape(-1)
    expected = width * height * channels
    if flat.size != expected:
        raise ShapeError(f"Expected array of length {expected} but got {flat.size}")
    array = flat.astype(np.float32).reshape(height, width, channels)
    return torch.from_numpy(array)


def _as_hwc(raster) -> torch.Tensor:
    tensor = torch.as_tensor(raster).detach().cpu()
    if tensor.dim() == 2:
        tensor = tensor.unsqueeze(-1)
    elif tensor.dim() == 4 and tensor.shape[0] == 1:
        tensor = tensor.squeeze(0)
    if tensor.dim() != 3:
        raise ShapeError(f"Cannot convert tensor of shape {tuple(tensor.shape)} to pixels")
    if tensor.shape[-1] < 1:
        raise ShapeError(f"Tensor must have at least 1 channel but has {tensor.shape[-1]}")
    return tensor.float()


def raster_to_pixels(raster, normalize: bool = True, out_channels=None) -> PixelBuffer:
    """Convert a raster to 8-bit pixels.

    Args:
        raster: [H, W], [H, W, C] or [1, H, W, C] tensor or array.
        normalize: min-max rescale to 0..255 before quantizing.
        out_channels: None keeps the raster's channel count; 4 expands to RGBA
            with an opaque alpha channel. A single channel is replicated
            when 3 are requested.
    """
    tensor = _as_hwc(raster)
    if normalize:
        tensor = normalize_tensor(tensor, 0.0, 255.0)
    if tensor.shape[-1] not in SUPPORTED_CHANNELS:
        logger.warning("Unusual number of channels: %d. Converting to grayscale.", tensor.shape[-1])
        tensor = tensor.mean(dim=-1, keepdim=True)
    if out_channels is not None:
        out_channels = validate_channel_count(out_channels)
        if out_channels == 4:
            tensor = expand_to_rgba(tensor)
        elif out_channels == 3 and tensor.shape[-1] == 1:
            tensor = tensor.expand(*tensor.shape[:-1], 3)
        elif out_channels != tensor.shape[-1]:
            raise ShapeError(f"Cannot convert {tensor.shape[-1]}-channel raster to {out_channels} channels")
    height, width, channels = tensor.shape
    data = tensor.clamp(0.0, 255.0).to(torch.uint8).numpy()
    return PixelBuffer(data.reshape(-1), width=width, height=height, channels=channels)


def read_raster(path) -> np.ndarray:
    """Read a raster file into a float32 [height, width, bands] array via rasterio."""
    try:
        import rasterio  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise ImportError("rasterio required to read raster files. Install with `pip install rasterio`.") from exc
    with rasterio.open(str(path)) as src:
        array = src.read()
    if array is None or array.size == 0:
        raise RuntimeError("Raster source returned no data.")
    # rasterio reads band-first
    return np.ascontiguousarray(np.moveaxis(array, 0, -1)).astype(np.float32)


def materialize_raster(raster_input):
    """Resolve arrays, tensors, loader callables and file paths to an array or tensor."""
    if isinstance(raster_input, (np.ndarray, torch.Tensor)):
        return raster_input
    if isinstance(raster_input, PixelBuffer):
        return raster_input.to_array()
    if callable(raster_input):
        materialized = raster_input()
        if not isinstance(materialized, (np.ndarray, torch.Tensor)):
            raise TypeError("Raster loader must return a numpy.ndarray or torch.Tensor")
        return materialized
    if isinstance(raster_input, (str, Path)):
        source = str(raster_input)
        if not Path(source).exists():
            raise FileNotFoundError(f"Unable to open raster source: {source}")
        return read_raster(source)
    raise TypeError(f"Unsupported raster input type: {type(raster_input)!r}")


__all__ = ["PixelBuffer", "pixels_to_raster", "raster_to_pixels", "read_raster", "materialize_raster"]
