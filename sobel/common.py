# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Common helpers: error taxonomy, device selection, status emitters."""
from __future__ import annotations

import os
from typing import Optional

import torch

DEVICE_ENV_VAR = "SOBEL_DEVICE"


class SobelError(Exception):
    """Base class for edge-detection errors."""


class ConfigurationError(SobelError, ValueError):
    """Raised when a kernel size, output format or option is not supported."""


class ShapeError(SobelError, ValueError):
    """Raised when a raster or pixel buffer has an unsupported layout."""


class ComputationFailure(SobelError, RuntimeError):
    """Wraps a tensor-engine failure. Reported out of band, never raised by the filter."""

    def __init__(self, message: str, stage: str = "compute"):
        super().__init__(message)
        self.stage = stage


def _coerce_torch_device(device_like) -> Optional[torch.device]:
    """Parse a device string or ``torch.device``; None when it cannot be parsed."""
    if device_like is None:
        return None
    if isinstance(device_like, torch.device):
        return device_like
    if isinstance(device_like, str):
        try:
            return torch.device(device_like)
        except (TypeError, ValueError, RuntimeError):
            return None
    return None


def _mps_available() -> bool:
    mps = getattr(torch.backends, "mps", None)
    return bool(mps and mps.is_available())


def _select_device(preference=None) -> torch.device:
    """Pick a torch.device from a preference, falling back CUDA -> MPS -> CPU.

    Args:
        preference: "auto", a device string such as "cuda:1", "mps" or "cpu"
            (case-insensitive), or a ``torch.device``. When omitted the
            ``SOBEL_DEVICE`` environment variable is consulted, then "auto".
            Unparseable or unavailable devices fall back to auto.
    """
    if isinstance(preference, torch.device):
        requested = preference
    else:
        pref = (preference or os.environ.get(DEVICE_ENV_VAR) or "auto").strip().lower()
        requested = None if pref == "auto" else _coerce_torch_device(pref)
    if requested is not None:
        if requested.type == "cuda" and torch.cuda.is_available():
            return requested
        if requested.type == "mps" and _mps_available():
            return torch.device("mps")
        if requested.type == "cpu":
            return torch.device("cpu")

    if torch.cuda.is_available():
        return torch.device("cuda")
    if _mps_available():
        return torch.device("mps")
    return torch.device("cpu")


def _emit_status(callback, message) -> None:
    if not callback:
        return
    try:
        callback(message)
    except Exception:
        pass


__all__ = [
    "DEVICE_ENV_VAR",
    "SobelError",
    "ConfigurationError",
    "ShapeError",
    "ComputationFailure",
    "_coerce_torch_device",
    "_select_device",
    "_emit_status",
]
