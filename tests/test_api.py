# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

import numpy as np
import pytest
import torch

from sobel import ConfigurationError, OutputFormat, PixelBuffer, SobelConfig, create_filter_factory, detect_edges


def test_detect_edges_on_array(center_pixel_rgb):
    result = detect_edges(center_pixel_rgb, device_preference="cpu")
    assert result.shape == (4, 4, 1)
    assert result.max() == pytest.approx(255.0, abs=1e-3)
    assert result.min() == pytest.approx(0.0, abs=1e-3)
    assert result[0, 0, 0] == 0.0


def test_detect_edges_in_color(center_pixel_rgb):
    result = detect_edges(torch.from_numpy(center_pixel_rgb), use_grayscale=False, device_preference="cpu")
    assert isinstance(result, torch.Tensor)
    assert result.shape == (4, 4, 3)


def test_detect_edges_on_pixel_buffer():
    image = np.zeros((6, 6, 4), dtype=np.uint8)
    image[:, 3:, :3] = 200
    image[..., 3] = 255
    result = detect_edges(PixelBuffer(image, width=6, height=6, channels=4), device_preference="cpu")
    assert isinstance(result, PixelBuffer)
    assert result.channels == 4
    rgba = result.to_array()
    assert rgba[..., :3].max() == 255
    assert (rgba[..., 0] == rgba[..., 1]).all()
    assert (rgba[..., 3] == 255).all()


def test_detect_edges_keeps_rgb_pixel_layout():
    image = np.zeros((5, 5, 3), dtype=np.uint8)
    image[2:, :, :] = 120
    result = detect_edges(PixelBuffer(image, width=5, height=5, channels=3), device_preference="cpu")
    assert result.channels == 3
    assert result.to_array().shape == (5, 5, 3)


def test_filter_factory_applies_defaults_and_overrides():
    factory = create_filter_factory(kernel_size=5, output="direction", device_preference="cpu")
    first = factory()
    assert first.config.kernel_size == 5
    assert first.config.output is OutputFormat.DIRECTION
    assert first.device.type == "cpu"
    second = factory(output="x", grayscale=True)
    assert second.config.output is OutputFormat.X
    assert second.config.grayscale is True
    assert first.config.output is OutputFormat.DIRECTION


def test_filter_factory_accepts_base_config():
    factory = create_filter_factory(SobelConfig(kernel_size=7), device_preference="cpu")
    assert factory().config.kernel_size == 7


def test_filter_factory_validates_presets_early():
    with pytest.raises(ConfigurationError):
        create_filter_factory(kernel_size=9)
