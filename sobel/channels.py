# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Channel adapter: brings a [H, W, C] raster into the layout the convolution expects.

One table drives both the tensor path and the pixel-buffer path:

    channels  grayscale  steps                   result
    4         on         drop alpha, luma        1
    3         on         luma                    1
    1         on         -                       1
    4         off        drop alpha              3
    3         off        -                       3
    1         off        -                       1

Alpha is never convolved.
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Tuple

import torch

from .common import ShapeError

logger = logging.getLogger(__name__)

SUPPORTED_CHANNELS: Tuple[int, ...] = (1, 3, 4)
LUMA_WEIGHTS: Tuple[float, float, float] = (0.2989, 0.5870, 0.1140)

DROP_ALPHA = "drop_alpha"
LUMA = "luma"

CHANNEL_PLAN: Mapping[Tuple[int, bool], Tuple[str, ...]] = MappingProxyType(
    {
        (4, True): (DROP_ALPHA, LUMA),
        (3, True): (LUMA,),
        (1, True): (),
        (4, False): (DROP_ALPHA,),
        (3, False): (),
        (1, False): (),
    }
)


class AdaptedRaster(NamedTuple):
    tensor: torch.Tensor
    allocated: bool


def validate_channel_count(channels: int) -> int:
    try:
        count = int(channels)
    except (TypeError, ValueError) as exc:
        raise ShapeError(f"Channel count must be an integer, got {channels!r}") from exc
    if count not in SUPPORTED_CHANNELS:
        raise ShapeError(f"Channels must be 1, 3, or 4 (got {count}).")
    return count


def validate_raster_shape(shape) -> Tuple[int, int, int]:
    if len(shape) != 3:
        raise ShapeError(f"Expected a [height, width, channels] raster, got shape {tuple(shape)}")
    height, width, channels = (int(v) for v in shape)
    if height <= 0 or width <= 0:
        raise ShapeError(f"Raster height and width must be positive, got {height}x{width}")
    validate_channel_count(channels)
    return height, width, channels


def channel_plan(channels: int, grayscale: bool) -> Tuple[str, ...]:
    return CHANNEL_PLAN[(validate_channel_count(channels), bool(grayscale))]


def adapted_channel_count(channels: int, grayscale: bool) -> int:
    steps = channel_plan(channels, grayscale)
    if LUMA in steps:
        return 1
    if DROP_ALPHA in steps:
        return 3
    return int(channels)


def drop_alpha(raster: torch.Tensor) -> torch.Tensor:
    return raster[..., :3]


def rgb_to_grayscale(raster: torch.Tensor) -> torch.Tensor:
    """Luma-weighted average of an RGB raster, keeping a unit channel axis."""
    if raster.shape[-1] != 3:
        raise ShapeError(f"rgb_to_grayscale expects 3 channels, got {raster.shape[-1]}")
    weights = torch.tensor(LUMA_WEIGHTS, dtype=raster.dtype, device=raster.device)
    return (raster * weights).sum(dim=-1, keepdim=True)


def expand_to_rgba(raster: torch.Tensor, alpha: Optional[float] = 255.0) -> torch.Tensor:
    """Expand a 1/3/4-channel raster to RGBA with an opaque alpha channel."""
    channels = validate_channel_count(raster.shape[-1])
    if channels == 4:
        return raster
    rgb = raster.expand(*raster.shape[:-1], 3) if channels == 1 else raster
    fill = torch.full((*raster.shape[:-1], 1), float(alpha), dtype=raster.dtype, device=raster.device)
    return torch.cat([rgb, fill], dim=-1)


_STEP_FUNCS = {DROP_ALPHA: drop_alpha, LUMA: rgb_to_grayscale}


def adapt_channels(raster: torch.Tensor, grayscale: bool) -> AdaptedRaster:
    """Apply the channel plan for ``raster``; ``allocated`` is True when a new buffer was made."""
    _, _, channels = validate_raster_shape(raster.shape)
    steps = channel_plan(channels, grayscale)
    tensor = raster
    for step in steps:
        tensor = _STEP_FUNCS[step](tensor)
    if steps:
        # slicing returns a view; make it a standalone buffer so the caller's raster is never aliased
        tensor = tensor.contiguous()
        if tensor.data_ptr() == raster.data_ptr():
            tensor = tensor.clone()
    logger.debug("Channel adapter: %d channel(s), grayscale=%s -> steps %s", channels, grayscale, steps or "none")
    return AdaptedRaster(tensor, bool(steps))


__all__ = [
    "SUPPORTED_CHANNELS",
    "LUMA_WEIGHTS",
    "CHANNEL_PLAN",
    "AdaptedRaster",
    "validate_channel_count",
    "validate_raster_shape",
    "channel_plan",
    "adapted_channel_count",
    "drop_alpha",
    "rgb_to_grayscale",
    "expand_to_rgba",
    "adapt_channels",
]
