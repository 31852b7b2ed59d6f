# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Min-max rescaling with a guarded denominator."""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import torch

from .scope import TensorScope

logger = logging.getLogger(__name__)

NORMALIZE_EPS = 1e-6


def normalize_tensor(
    tensor,
    min_value: float = 0.0,
    max_value: float = 255.0,
    *,
    eps: float = NORMALIZE_EPS,
    scope: Optional[TensorScope] = None,
):
    """Linearly map ``tensor`` from [tensor.min(), tensor.max()] onto [min_value, max_value].

    Statistics are taken over the whole tensor, all channels together. A flat
    input maps to ``min_value`` everywhere instead of dividing by zero. NumPy
    input returns NumPy output.
    """
    if isinstance(tensor, np.ndarray):
        result = normalize_tensor(torch.from_numpy(np.asarray(tensor, dtype=np.float32)), min_value, max_value, eps=eps)
        return result.numpy()
    if not torch.is_floating_point(tensor):
        tensor = tensor.float()
    low = float(min_value)
    high = float(max_value)
    t_min = tensor.min()
    t_max = tensor.max()
    span = torch.clamp(t_max - t_min, min=eps)
    if scope is not None:
        scope.track(t_min)
        scope.track(t_max)
        scope.track(span)
    if logger.isEnabledFor(logging.DEBUG) and float(t_max - t_min) <= 0.0:
        logger.debug("Flat input (value %.6g) normalized to %.6g.", float(t_min), low)
    return (tensor - t_min) / span * (high - low) + low


__all__ = ["NORMALIZE_EPS", "normalize_tensor"]
