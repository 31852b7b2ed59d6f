# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Sobel filter instance.

``SobelFilter`` holds a validated ``SobelConfig`` and a torch device, and runs
every call as adapt -> convolve -> reduce -> normalize inside a ``TensorScope``.
Tensor-engine failures never reach the caller: the call returns a zero raster
of the expected shape and the failure is logged, sent to the callbacks and
stored on ``last_failure``.
"""
from __future__ import annotations

import asyncio
import functools
import logging
from typing import Callable, NamedTuple, Optional, Tuple

import numpy as np
import torch

from .channels import adapt_channels, adapted_channel_count, validate_raster_shape
from .common import ComputationFailure, ShapeError, _emit_status, _select_device
from .config import SobelConfig, config_from_mapping
from .gradients import compute_gradients
from .io import PixelBuffer, materialize_raster, pixels_to_raster, raster_to_pixels
from .normalize import normalize_tensor
from .processors import gradient_direction, gradient_magnitude, process_gradients
from .scope import TensorScope

logger = logging.getLogger(__name__)

DISPLAY_RANGE: Tuple[float, float] = (0.0, 1.0)


class GradientComponents(NamedTuple):
    magnitude: object
    direction: object


class SobelFilter:
    def __init__(
        self,
        config=None,
        *,
        device_preference: Optional[str] = None,
        status_callback: Optional[Callable[[str], None]] = None,
        error_callback: Optional[Callable[[ComputationFailure], None]] = None,
        **overrides,
    ):
        base = config if isinstance(config, SobelConfig) else config_from_mapping(config)
        self._config = base.updated(**overrides) if overrides else base
        self.device = _select_device(device_preference)
        self.device_label = str(self.device)
        self.status_callback = status_callback
        self.error_callback = error_callback
        self.last_failure: Optional[ComputationFailure] = None
        self._warn_if_redundant(self._config)
        logger.debug("SobelFilter configured on %s: %s", self.device_label, self._config.as_dict())

    def __repr__(self) -> str:
        cfg = self._config
        return f"SobelFilter(kernel_size={cfg.kernel_size}, output={cfg.output.value!r}, device={self.device_label!r})"

    @property
    def config(self) -> SobelConfig:
        return self._config

    def get_config(self) -> SobelConfig:
        return self._config

    def configure(self, **changes) -> None:
        """Validate ``changes`` and apply them together; on failure the current config is kept."""
        updated = self._config.updated(**changes)
        self._config = updated
        self._warn_if_redundant(updated)
        logger.debug("SobelFilter reconfigured: %s", updated.as_dict())

    @staticmethod
    def _warn_if_redundant(config: SobelConfig) -> None:
        if config.is_redundant_normalization:
            logger.warning(
                "Output 'normalized' is also normalized for display; the result is rescaled to %s twice. "
                "Set normalize_output_for_display=False to skip the second pass.",
                DISPLAY_RANGE,
            )

    # ------------------------------------------------------------------
    # Tensor entry points
    # ------------------------------------------------------------------
    def apply_to_tensor(self, raster):
        """Run the configured filter on a [H, W, C] raster.

        Returns a [H, W, C'] raster of the same kind as the input (numpy array or
        torch tensor on the input's device), where C' is 1 for grayscale and
        otherwise the input channels without alpha.
        """
        return self._apply(raster, self._config)

    def apply_with_format(self, raster, output):
        """Apply with a one-off output format; the instance configuration is unchanged."""
        return self._apply(raster, self._config.updated(output=output))

    @torch.no_grad()
    def get_gradient_components(self, raster) -> GradientComponents:
        """Magnitude and direction from a single convolution pass, without display normalization."""
        config = self._config
        source, shape = self._resolve(raster, config)
        with TensorScope("get_gradient_components") as scope:
            try:
                adapted = self._adapt(source, config, scope)
                pair = compute_gradients(adapted, config.kernel_size, scope=scope)
                magnitude = gradient_magnitude(pair.gx, pair.gy).squeeze(0)
                direction = gradient_direction(pair.gx, pair.gy).squeeze(0)
            except RuntimeError as exc:
                magnitude = self._fallback(exc, shape, "get_gradient_components")
                direction = torch.zeros_like(magnitude)
        return GradientComponents(self._to_caller(magnitude, source), self._to_caller(direction, source))

    @torch.no_grad()
    def _apply(self, raster, config: SobelConfig):
        source, shape = self._resolve(raster, config)
        with TensorScope("apply_to_tensor") as scope:
            try:
                adapted = self._adapt(source, config, scope)
                pair = compute_gradients(adapted, config.kernel_size, scope=scope)
                result = process_gradients(config.output, pair, config, scope=scope)
                if config.normalize_output_for_display:
                    result = scope.track(normalize_tensor(result, *DISPLAY_RANGE, scope=scope))
                result = scope.keep(result)
            except RuntimeError as exc:
                result = self._fallback(exc, shape, "apply_to_tensor")
        return self._to_caller(result, source)

    def _resolve(self, raster, config: SobelConfig):
        source = materialize_raster(raster)
        height, width, channels = validate_raster_shape(tuple(source.shape))
        shape = (height, width, adapted_channel_count(channels, config.grayscale))
        logger.debug(
            "Sobel input %dx%dx%d -> output %s (kernel=%d, output=%s, grayscale=%s)",
            height,
            width,
            channels,
            shape,
            config.kernel_size,
            config.output.value,
            config.grayscale,
        )
        return source, shape

    def _adapt(self, source, config: SobelConfig, scope: TensorScope) -> torch.Tensor:
        if isinstance(source, torch.Tensor):
            tensor = source.detach().to(device=self.device, dtype=torch.float32)
        else:
            array = np.ascontiguousarray(source, dtype=np.float32)
            if not array.flags.writeable:
                array = array.copy()
            tensor = torch.from_numpy(array).to(self.device)
        if tensor is not source:
            scope.track(tensor)
        adapted = adapt_channels(tensor, config.grayscale)
        if adapted.allocated:
            scope.track(adapted.tensor)
        return adapted.tensor

    @staticmethod
    def _to_caller(result: torch.Tensor, source):
        if isinstance(source, torch.Tensor):
            return result.to(source.device)
        return result.detach().cpu().numpy()

    def _fallback(self, exc: BaseException, shape, stage: str) -> torch.Tensor:
        failure = ComputationFailure(f"Sobel {stage} failed on {self.device_label}: {exc}", stage=stage)
        failure.__cause__ = exc
        self.last_failure = failure
        logger.error("Sobel %s failed on %s; returning a blank %s result.", stage, self.device_label, shape, exc_info=exc)
        _emit_status(self.status_callback, f"Edge detection failed ({exc}); returning blank frame.")
        _emit_status(self.error_callback, failure)
        return torch.zeros(shape, dtype=torch.float32)

    # ------------------------------------------------------------------
    # Pixel entry points
    # ------------------------------------------------------------------
    def apply_to_pixel_buffer(self, buffer, width=None, height=None, channels: int = 4, out_channels=None) -> PixelBuffer:
        """Filter 8-bit pixels and return 8-bit pixels rescaled to 0..255.

        ``buffer`` is a ``PixelBuffer`` or a flat pixel array accompanied by
        ``width``/``height``/``channels``. ``out_channels=4`` returns RGBA.
        """
        if not isinstance(buffer, PixelBuffer):
            if width is None or height is None:
                raise ShapeError("width and height are required for raw pixel arrays")
            buffer = PixelBuffer(np.asarray(buffer), width, height, channels)
        raster = pixels_to_raster(buffer.data, buffer.width, buffer.height, buffer.channels)
        result = self.apply_to_tensor(raster)
        return raster_to_pixels(result, normalize=True, out_channels=out_channels)

    async def apply_to_pixel_buffer_async(
        self,
        buffer,
        width=None,
        height=None,
        channels: int = 4,
        out_channels=None,
        executor=None,
    ) -> PixelBuffer:
        loop = asyncio.get_running_loop()
        call = functools.partial(self.apply_to_pixel_buffer, buffer, width, height, channels, out_channels)
        return await loop.run_in_executor(executor, call)

    def apply_to_2d_array(self, data) -> np.ndarray:
        """Filter a single-channel [H, W] array and return an [H, W] float32 array."""
        array = np.asarray(data, dtype=np.float32)
        if array.ndim != 2:
            raise ShapeError(f"Expected a 2D array, got shape {array.shape}")
        result = self._apply(array[..., np.newaxis], self._config)
        return result[..., 0]

    # ------------------------------------------------------------------
    # One-shot helpers
    # ------------------------------------------------------------------
    @classmethod
    def apply(cls, raster, config=None, **overrides):
        """Build a filter from ``config``/``overrides`` and run it once on ``raster``."""
        sobel_filter = cls(config, **overrides)
        if isinstance(raster, PixelBuffer):
            return sobel_filter.apply_to_pixel_buffer(raster)
        return sobel_filter.apply_to_tensor(raster)


__all__ = ["SobelFilter", "GradientComponents", "DISPLAY_RANGE"]
