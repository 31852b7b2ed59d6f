# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

import dataclasses
import textwrap

import pytest

from sobel.common import ConfigurationError
from sobel.config import SobelConfig, config_from_mapping, default_config, load_config
from sobel.processors import OutputFormat


def test_defaults():
    cfg = default_config()
    assert cfg.kernel_size == 3
    assert cfg.output is OutputFormat.MAGNITUDE
    assert cfg.grayscale is False
    assert cfg.normalization_range == (0.0, 1.0)
    assert cfg.normalize_output_for_display is True
    assert not cfg.is_redundant_normalization


def test_string_output_is_coerced_to_enum():
    cfg = SobelConfig(output="direction", normalization_range=[0, 255])
    assert cfg.output is OutputFormat.DIRECTION
    assert cfg.normalization_range == (0.0, 255.0)


def test_invalid_kernel_size_lists_supported_sizes():
    with pytest.raises(ConfigurationError, match="Supported sizes are: 3, 5, 7"):
        SobelConfig(kernel_size=4)
    with pytest.raises(ConfigurationError, match="Supported sizes are: 3, 5, 7"):
        SobelConfig(kernel_size=float("inf"))


def test_invalid_output_lists_supported_formats():
    with pytest.raises(ConfigurationError) as excinfo:
        SobelConfig(output="invalid")
    message = str(excinfo.value)
    for fmt in ("x", "y", "magnitude", "direction", "normalized"):
        assert fmt in message


@pytest.mark.parametrize("bad_range", [(0.0,), "ab", (0.0, float("nan")), None])
def test_invalid_normalization_range(bad_range):
    with pytest.raises(ConfigurationError, match="normalization_range"):
        SobelConfig(normalization_range=bad_range)


def test_config_is_frozen():
    cfg = SobelConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.kernel_size = 5  # type: ignore[misc]


def test_updated_is_validated_and_non_destructive():
    cfg = SobelConfig()
    updated = cfg.updated(kernel_size=7, output="x", grayscale=None)
    assert updated.kernel_size == 7
    assert updated.output is OutputFormat.X
    assert updated.grayscale is False
    assert cfg.kernel_size == 3
    with pytest.raises(ConfigurationError, match="Unknown configuration option"):
        cfg.updated(kernelsize=5)
    with pytest.raises(ConfigurationError):
        cfg.updated(kernel_size=5, output="bogus")


def test_redundant_normalization_flag():
    assert SobelConfig(output="normalized").is_redundant_normalization
    assert not SobelConfig(output="normalized", normalize_output_for_display=False).is_redundant_normalization


def test_as_dict_round_trips_through_mapping():
    cfg = SobelConfig(kernel_size=5, output="normalized", grayscale=True, normalization_range=(0, 255))
    assert config_from_mapping(cfg.as_dict()) == cfg
    assert config_from_mapping(None) == default_config()
    with pytest.raises(ConfigurationError):
        config_from_mapping([("kernel_size", 3)])


def test_load_config_defaults_and_missing_path(tmp_path):
    assert load_config() == default_config()
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_load_config_from_yaml(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "sobel.yaml"
    path.write_text(
        textwrap.dedent(
            """
            kernel_size: 7
            output: normalized
            normalization_range: [0, 255]
            normalize_output_for_display: false
            """
        )
    )
    cfg = load_config(str(path))
    assert cfg.kernel_size == 7
    assert cfg.output is OutputFormat.NORMALIZED
    assert cfg.normalization_range == (0.0, 255.0)
    assert cfg.normalize_output_for_display is False


def test_load_config_from_yaml_rejects_bad_values(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "bad.yml"
    path.write_text("kernel_size: 4\n")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_load_config_from_python_module(tmp_path):
    path = tmp_path / "override.py"
    path.write_text(
        textwrap.dedent(
            """
            from sobel.config import SobelConfig

            def get_config():
                return SobelConfig(kernel_size=5, grayscale=True)
            """
        )
    )
    cfg = load_config(str(path))
    assert cfg.kernel_size == 5
    assert cfg.grayscale is True


def test_load_config_from_python_constant(tmp_path):
    path = tmp_path / "constant.py"
    path.write_text("from sobel.config import SobelConfig\nCONFIG = SobelConfig(output='y')\n")
    assert load_config(str(path)).output is OutputFormat.Y

    empty = tmp_path / "empty.py"
    empty.write_text("VALUE = 1\n")
    with pytest.raises(AttributeError):
        load_config(str(empty))


@pytest.mark.parametrize(
    "raw, expected",
    [(True, True), (False, False), (1, True), (0, False), ("false", False), ("No", False), ("true", True), (" on ", True)],
)
def test_flags_parse_common_spellings(raw, expected):
    cfg = SobelConfig(grayscale=raw, normalize_output_for_display=raw)
    assert cfg.grayscale is expected
    assert cfg.normalize_output_for_display is expected


@pytest.mark.parametrize("raw", ["maybe", 2, 0.5, [True]])
def test_flags_reject_non_boolean_values(raw):
    with pytest.raises(ConfigurationError, match="grayscale must be a boolean"):
        SobelConfig(grayscale=raw)


def test_quoted_yaml_flags_are_not_truthy(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "quoted.yaml"
    path.write_text('grayscale: "false"\nnormalize_output_for_display: "no"\n')
    cfg = load_config(path)
    assert cfg.grayscale is False
    assert cfg.normalize_output_for_display is False
