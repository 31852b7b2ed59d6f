# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

import numpy as np
import torch

from sobel import PixelBuffer, live_tensor_count
from sobel.video import filter_frames


def _frames(count, shape=(6, 8, 3)):
    for index in range(count):
        frame = np.zeros(shape, dtype=np.float32)
        frame[:, index % shape[1]:, :] = 255.0
        yield frame


def test_frames_are_processed_in_order(make_filter):
    sobel_filter = make_filter(grayscale=True, normalize_output_for_display=False)
    frames = list(_frames(4))
    results = list(filter_frames(sobel_filter, frames))
    assert len(results) == 4
    for frame, result in zip(frames, results):
        np.testing.assert_array_equal(result, sobel_filter.apply_to_tensor(frame))


def test_frames_are_pulled_lazily(make_filter):
    pulled = []

    def source():
        for frame in _frames(3):
            pulled.append(frame)
            yield frame

    stream = filter_frames(make_filter(), source())
    next(stream)
    assert len(pulled) == 1
    assert live_tensor_count() == 0


def test_torch_frames_come_back_on_host(make_filter):
    frames = [torch.rand((4, 4, 1)) for _ in range(2)]
    results = list(filter_frames(make_filter(), frames))
    assert all(isinstance(result, np.ndarray) for result in results)


def test_pixel_frames_and_status(make_filter):
    messages = []
    results = list(filter_frames(make_filter(), _frames(4), status_callback=messages.append, to_pixels=True, report_every=2))
    assert all(isinstance(result, PixelBuffer) for result in results)
    assert results[0].channels == 3
    assert len(messages) == 2
    assert messages[-1].startswith("Filtered 4 frame(s)")
