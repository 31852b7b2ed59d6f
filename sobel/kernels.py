# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Sobel kernel catalog.

The 3x3 operator is the classic Sobel pair. Larger sizes are its separable
extensions: the smoothing axis uses the binomial row of order ``size - 1`` and
the derivative axis convolves ``[-1, 0, 1]`` with the binomial row of order
``size - 3``. The ``y`` kernel is the transpose of the ``x`` kernel.

All kernels are computed once at import and stored read-only.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

import numpy as np
import torch

from .common import ConfigurationError

SUPPORTED_KERNEL_SIZES: Tuple[int, ...] = (3, 5, 7)
KERNEL_AXES: Tuple[str, ...] = ("x", "y")


def _binomial_row(order: int) -> np.ndarray:
    row = np.ones(1, dtype=np.int64)
    for _ in range(order):
        row = np.convolve(row, np.array([1, 1], dtype=np.int64))
    return row


def _derivative_row(size: int) -> np.ndarray:
    return np.convolve(_binomial_row(size - 3), np.array([-1, 0, 1], dtype=np.int64))


def _build_catalog() -> Mapping[Tuple[str, int], np.ndarray]:
    catalog: Dict[Tuple[str, int], np.ndarray] = {}
    for size in SUPPORTED_KERNEL_SIZES:
        kernel_x = np.outer(_binomial_row(size - 1), _derivative_row(size))
        kernel_y = np.ascontiguousarray(kernel_x.T)
        for axis, kernel in (("x", kernel_x), ("y", kernel_y)):
            kernel.setflags(write=False)
            catalog[(axis, size)] = kernel
    return MappingProxyType(catalog)


KERNELS: Mapping[Tuple[str, int], np.ndarray] = _build_catalog()


def is_valid_kernel_size(size) -> bool:
    try:
        return int(size) == size and int(size) in SUPPORTED_KERNEL_SIZES
    except (TypeError, ValueError, OverflowError):
        return False


def available_kernel_sizes() -> List[int]:
    return list(SUPPORTED_KERNEL_SIZES)


def get_kernel(axis: str, size: int) -> np.ndarray:
    """Return the read-only ``size x size`` coefficient matrix for ``axis``."""
    if axis not in KERNEL_AXES:
        raise ConfigurationError(f"Unsupported kernel axis: {axis!r}. Supported axes are: {', '.join(KERNEL_AXES)}")
    if not is_valid_kernel_size(size):
        raise ConfigurationError(
            f"Unsupported kernel size: {size}. Supported sizes are: {', '.join(str(s) for s in SUPPORTED_KERNEL_SIZES)}"
        )
    return KERNELS[(axis, int(size))]


def build_depthwise_kernel(axis: str, size: int, channels: int, device=None, dtype=torch.float32) -> torch.Tensor:
    """Tile the kernel for ``groups=channels`` convolution: shape [C, 1, k, k]."""
    # catalog arrays are read-only; torch.as_tensor would warn on them
    kernel_2d = torch.tensor(get_kernel(axis, size).tolist(), dtype=dtype, device=device)
    kernel = kernel_2d.view(1, 1, kernel_2d.shape[0], kernel_2d.shape[1])
    return kernel.repeat(max(1, int(channels)), 1, 1, 1)


__all__ = [
    "SUPPORTED_KERNEL_SIZES",
    "KERNEL_AXES",
    "KERNELS",
    "is_valid_kernel_size",
    "available_kernel_sizes",
    "get_kernel",
    "build_depthwise_kernel",
]
