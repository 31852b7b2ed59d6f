# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Per-call tensor arena.

Every intermediate tensor created during one filter call is registered with a
``TensorScope``. Leaving the ``with`` block releases all registered tensors
exactly once, on normal and exceptional exits alike. Tensors handed back to the
caller are removed from the scope with ``keep``.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

import torch

logger = logging.getLogger(__name__)

_LIVE_LOCK = threading.Lock()
_LIVE_TENSORS = 0


def _adjust_live(delta: int) -> None:
    global _LIVE_TENSORS
    with _LIVE_LOCK:
        _LIVE_TENSORS += delta


def live_tensor_count() -> int:
    """Number of tensors currently tracked by open scopes, process-wide."""
    with _LIVE_LOCK:
        return _LIVE_TENSORS


class TensorScope:
    def __init__(self, label: str = "call"):
        self.label = label
        self._tensors: Dict[int, torch.Tensor] = {}
        self._tracked_total = 0
        self._released = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def tracked_count(self) -> int:
        """Tensors currently held by the scope."""
        return len(self._tensors)

    @property
    def tracked_total(self) -> int:
        return self._tracked_total

    @property
    def released_count(self) -> int:
        return self._released

    def track(self, tensor: Optional[torch.Tensor]) -> Optional[torch.Tensor]:
        if tensor is None:
            return None
        if self._closed:
            raise RuntimeError(f"Cannot track tensors in closed scope '{self.label}'.")
        key = id(tensor)
        if key not in self._tensors:
            self._tensors[key] = tensor
            self._tracked_total += 1
            _adjust_live(1)
        return tensor

    def keep(self, tensor: torch.Tensor) -> torch.Tensor:
        """Transfer ownership of ``tensor`` out of the scope."""
        if self._tensors.pop(id(tensor), None) is not None:
            _adjust_live(-1)
        return tensor

    def release(self) -> int:
        if self._closed:
            return 0
        self._closed = True
        count = len(self._tensors)
        self._tensors.clear()
        self._released += count
        if count:
            _adjust_live(-count)
        logger.debug("Scope '%s' released %d tensor(s).", self.label, count)
        return count

    def __enter__(self) -> "TensorScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


__all__ = ["TensorScope", "live_tensor_count"]
