# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Depthwise Sobel convolution producing the (Gx, Gy) gradient pair."""
from __future__ import annotations

from typing import NamedTuple, Optional

import torch
import torch.nn.functional as F

from .channels import validate_raster_shape
from .kernels import build_depthwise_kernel, get_kernel
from .scope import TensorScope


class GradientPair(NamedTuple):
    gx: torch.Tensor
    gy: torch.Tensor


def _track(scope: Optional[TensorScope], tensor: torch.Tensor) -> torch.Tensor:
    return scope.track(tensor) if scope is not None else tensor


def compute_gradients(raster: torch.Tensor, kernel_size: int, scope: Optional[TensorScope] = None) -> GradientPair:
    """Convolve each channel of ``raster`` with the Sobel kernels.

    Args:
        raster: float tensor [H, W, C] (already channel-adapted).
        kernel_size: 3, 5 or 7.
        scope: optional arena that receives every intermediate.
    Returns:
        GradientPair with ``gx`` and ``gy`` shaped [1, H, W, C]. Zero padding keeps
        the spatial size.
    """
    _, _, channels = validate_raster_shape(raster.shape)
    padding = get_kernel("x", kernel_size).shape[0] // 2
    kx = _track(scope, build_depthwise_kernel("x", kernel_size, channels, device=raster.device, dtype=raster.dtype))
    ky = _track(scope, build_depthwise_kernel("y", kernel_size, channels, device=raster.device, dtype=raster.dtype))
    # [H, W, C] -> [1, C, H, W] for conv2d
    x = _track(scope, raster.permute(2, 0, 1).unsqueeze(0))
    grad_x = _track(scope, F.conv2d(x, kx, stride=1, padding=padding, groups=channels))
    grad_y = _track(scope, F.conv2d(x, ky, stride=1, padding=padding, groups=channels))
    gx = _track(scope, grad_x.permute(0, 2, 3, 1))
    gy = _track(scope, grad_y.permute(0, 2, 3, 1))
    return GradientPair(gx, gy)


__all__ = ["GradientPair", "compute_gradients"]
