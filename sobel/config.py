# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Filter configuration, validation and loading."""
from __future__ import annotations

import dataclasses
import importlib.util
import math
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from .common import ConfigurationError
from .kernels import SUPPORTED_KERNEL_SIZES, is_valid_kernel_size
from .processors import OutputFormat, parse_output_format


@dataclass(frozen=True)
class SobelConfig:
    kernel_size: int = 3
    output: OutputFormat = OutputFormat.MAGNITUDE
    grayscale: bool = False
    normalization_range: Tuple[float, float] = (0.0, 1.0)  # used by the "normalized" output
    normalize_output_for_display: bool = True  # final rescale to [0, 1]

    def __post_init__(self):
        if not is_valid_kernel_size(self.kernel_size):
            raise ConfigurationError(
                f"Unsupported kernel size: {self.kernel_size}. "
                f"Supported sizes are: {', '.join(str(s) for s in SUPPORTED_KERNEL_SIZES)}"
            )
        object.__setattr__(self, "kernel_size", int(self.kernel_size))
        object.__setattr__(self, "output", parse_output_format(self.output))
        object.__setattr__(self, "normalization_range", _coerce_range(self.normalization_range))
        object.__setattr__(self, "grayscale", _coerce_flag("grayscale", self.grayscale))
        object.__setattr__(self, "normalize_output_for_display", _coerce_flag("normalize_output_for_display", self.normalize_output_for_display))

    @property
    def is_redundant_normalization(self) -> bool:
        """True when the normalized output is rescaled a second time for display."""
        return self.output is OutputFormat.NORMALIZED and self.normalize_output_for_display

    def updated(self, **changes: Any) -> "SobelConfig":
        """Return a validated copy with ``changes`` applied; ``self`` is untouched on failure."""
        unknown = sorted(set(changes) - _FIELD_NAMES)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration option(s): {', '.join(unknown)}. "
                f"Supported options are: {', '.join(sorted(_FIELD_NAMES))}"
            )
        applied = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **applied)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "kernel_size": self.kernel_size,
            "output": self.output.value,
            "grayscale": self.grayscale,
            "normalization_range": self.normalization_range,
            "normalize_output_for_display": self.normalize_output_for_display,
        }


_FIELD_NAMES = frozenset(field.name for field in dataclasses.fields(SobelConfig))


_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def _coerce_flag(name: str, value) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _coerce_range(value) -> Tuple[float, float]:
    try:
        low, high = value
        low, high = float(low), float(high)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"normalization_range must be a (min, max) pair of numbers, got {value!r}") from exc
    if not (math.isfinite(low) and math.isfinite(high)):
        raise ConfigurationError(f"normalization_range must be finite, got {value!r}")
    return (low, high)


def default_config() -> SobelConfig:
    return SobelConfig()


def config_from_mapping(mapping: Optional[Mapping[str, Any]]) -> SobelConfig:
    if not mapping:
        return default_config()
    if not isinstance(mapping, Mapping):
        raise ConfigurationError(f"Configuration must be a mapping, got {type(mapping).__name__}")
    return default_config().updated(**dict(mapping))


def load_config(path: Optional[str] = None) -> SobelConfig:
    """Load a SobelConfig from a YAML or python file, or return the default config.

    Python files must expose ``get_config() -> SobelConfig`` or ``CONFIG``.
    YAML files hold a flat mapping of the config fields and need PyYAML.
    """
    if not path:
        return default_config()

    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config path not found: {cfg_path}")

    if cfg_path.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise ImportError("PyYAML required for YAML configs. Install with `pip install pyyaml` or use a python config file.") from exc
        with cfg_path.open() as f:
            data = yaml.safe_load(f) or {}
        return config_from_mapping(data)

    spec = importlib.util.spec_from_file_location("_sobel_config_override", cfg_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Unable to import config from {cfg_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)  # type: ignore[arg-type]

    getter = getattr(module, "get_config", None)
    if callable(getter):
        cfg = getter()
        if not isinstance(cfg, SobelConfig):
            raise TypeError("get_config() must return sobel.config.SobelConfig")
        return cfg

    if hasattr(module, "CONFIG") and isinstance(module.CONFIG, SobelConfig):
        return module.CONFIG

    raise AttributeError("Config file must define get_config() -> SobelConfig or CONFIG: SobelConfig")


__all__ = ["SobelConfig", "default_config", "config_from_mapping", "load_config"]
