# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Sobel edge detection for rasters and video frames on torch.

The engine is split across cohesive modules: the kernel catalog, the channel
adapter, the depthwise gradient convolution, the output strategy table, the
normalization stage and the per-call tensor scope. ``SobelFilter`` ties them
together; ``detect_edges`` is the one-shot entry point.
"""
from .api import EDGE_DEFAULTS, create_filter_factory, detect_edges
from .channels import adapt_channels, adapted_channel_count
from .common import ComputationFailure, ConfigurationError, ShapeError, SobelError
from .config import SobelConfig, config_from_mapping, load_config
from .filter import GradientComponents, SobelFilter
from .io import PixelBuffer, pixels_to_raster, raster_to_pixels, read_raster
from .kernels import available_kernel_sizes, get_kernel, is_valid_kernel_size
from .normalize import normalize_tensor
from .processors import OutputFormat, available_output_formats, is_valid_output_format
from .scope import TensorScope, live_tensor_count
from .video import filter_frames

__version__ = "0.1.0"

__all__ = [
    "ComputationFailure",
    "ConfigurationError",
    "EDGE_DEFAULTS",
    "GradientComponents",
    "OutputFormat",
    "PixelBuffer",
    "ShapeError",
    "SobelConfig",
    "SobelError",
    "SobelFilter",
    "TensorScope",
    "adapt_channels",
    "adapted_channel_count",
    "available_kernel_sizes",
    "available_output_formats",
    "config_from_mapping",
    "create_filter_factory",
    "detect_edges",
    "filter_frames",
    "get_kernel",
    "is_valid_kernel_size",
    "is_valid_output_format",
    "live_tensor_count",
    "load_config",
    "normalize_tensor",
    "pixels_to_raster",
    "raster_to_pixels",
    "read_raster",
]
