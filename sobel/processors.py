# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Output strategies that reduce a gradient pair to a single raster.

Every strategy is element-wise, so channels never mix; the only reduction is
the min/max in ``normalized``, which spans the whole tensor so multi-channel
results stay comparable across channels.
"""
from __future__ import annotations

import math
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, List, Mapping, Optional

import torch

from .common import ConfigurationError, ShapeError
from .gradients import GradientPair
from .normalize import normalize_tensor
from .scope import TensorScope

if TYPE_CHECKING:  # pragma: no cover
    from .config import SobelConfig


class OutputFormat(str, Enum):
    X = "x"
    Y = "y"
    MAGNITUDE = "magnitude"
    DIRECTION = "direction"
    NORMALIZED = "normalized"

    def __str__(self) -> str:
        return self.value


GradientProcessor = Callable[..., torch.Tensor]


def _check_pair(gx: torch.Tensor, gy: torch.Tensor) -> None:
    if gx.shape != gy.shape:
        raise ShapeError(f"Shape mismatch between gx {tuple(gx.shape)} and gy {tuple(gy.shape)}")


def gradient_magnitude(gx: torch.Tensor, gy: torch.Tensor) -> torch.Tensor:
    _check_pair(gx, gy)
    return torch.sqrt(gx * gx + gy * gy)


def gradient_direction(gx: torch.Tensor, gy: torch.Tensor) -> torch.Tensor:
    """atan2(gy, gx) in (-pi, pi]."""
    _check_pair(gx, gy)
    angle = torch.atan2(gy, gx)
    # a negative-zero gy with negative gx yields exactly -pi
    return torch.where(angle <= -math.pi, torch.full_like(angle, math.pi), angle)


def _process_x(gx, gy, config=None, scope=None):
    return torch.abs(gx)


def _process_y(gx, gy, config=None, scope=None):
    return torch.abs(gy)


def _process_magnitude(gx, gy, config=None, scope=None):
    return gradient_magnitude(gx, gy)


def _process_direction(gx, gy, config=None, scope=None):
    return gradient_direction(gx, gy)


def _process_normalized(gx, gy, config=None, scope=None):
    low, high = (0.0, 1.0) if config is None else config.normalization_range
    magnitude = gradient_magnitude(gx, gy)
    if scope is not None:
        scope.track(magnitude)
    return normalize_tensor(magnitude, low, high, scope=scope)


OUTPUT_PROCESSORS: Mapping[OutputFormat, GradientProcessor] = MappingProxyType(
    {
        OutputFormat.X: _process_x,
        OutputFormat.Y: _process_y,
        OutputFormat.MAGNITUDE: _process_magnitude,
        OutputFormat.DIRECTION: _process_direction,
        OutputFormat.NORMALIZED: _process_normalized,
    }
)


def available_output_formats() -> List[str]:
    return [fmt.value for fmt in OUTPUT_PROCESSORS]


def parse_output_format(value) -> OutputFormat:
    if isinstance(value, OutputFormat):
        return value
    try:
        return OutputFormat(value)
    except ValueError:
        raise ConfigurationError(
            f"Unsupported output format: {value!r}. Supported formats are: {', '.join(available_output_formats())}"
        ) from None


def is_valid_output_format(value) -> bool:
    try:
        parse_output_format(value)
    except ConfigurationError:
        return False
    return True


def process_gradients(
    output,
    pair: GradientPair,
    config: Optional["SobelConfig"] = None,
    scope: Optional[TensorScope] = None,
) -> torch.Tensor:
    """Run the strategy for ``output`` and drop the batch axis: [1, H, W, C] -> [H, W, C]."""
    processor = OUTPUT_PROCESSORS[parse_output_format(output)]
    result = processor(pair.gx, pair.gy, config, scope=scope)
    if scope is not None:
        scope.track(result)
    return result.squeeze(0)


__all__ = [
    "OutputFormat",
    "GradientProcessor",
    "OUTPUT_PROCESSORS",
    "gradient_magnitude",
    "gradient_direction",
    "available_output_formats",
    "parse_output_format",
    "is_valid_output_format",
    "process_gradients",
]
