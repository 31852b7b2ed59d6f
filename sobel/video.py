# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Frame-by-frame filtering for video streams."""
from __future__ import annotations

import time
from typing import Callable, Iterable, Iterator, Optional

import numpy as np
import torch

from .common import _emit_status
from .filter import SobelFilter
from .io import raster_to_pixels


def filter_frames(
    sobel_filter: SobelFilter,
    frames: Iterable,
    *,
    status_callback: Optional[Callable[[str], None]] = None,
    to_pixels: bool = False,
    report_every: int = 30,
) -> Iterator:
    """Yield one filtered frame per input frame, strictly in order.

    Each result is copied to host memory before it is yielded and the next
    frame is only pulled once the consumer asks for it, so calls never overlap
    and a slow consumer applies backpressure to the source.

    Args:
        sobel_filter: configured filter.
        frames: iterable of [H, W, C] rasters (numpy or torch).
        status_callback: receives a throughput message every ``report_every`` frames.
        to_pixels: yield 8-bit ``PixelBuffer`` frames instead of float arrays.
    """
    report_every = max(1, int(report_every))
    started = time.perf_counter()
    count = 0
    for frame in frames:
        result = sobel_filter.apply_to_tensor(frame)
        if isinstance(result, torch.Tensor):
            result = result.detach().cpu().numpy()
        count += 1
        if count % report_every == 0:
            elapsed = max(time.perf_counter() - started, 1e-9)
            _emit_status(status_callback, f"Filtered {count} frame(s) ({count / elapsed:.1f} fps).")
        if to_pixels:
            yield raster_to_pixels(result, normalize=True)
        else:
            yield np.asarray(result)


__all__ = ["filter_frames"]
