# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
YAML → DnnTrainConfig.

The file is parsed with yaml.safe_load, command-line overrides of the form
`section.key=value` are written into the parsed mapping, and the result is
validated once by pydantic. Overrides go through the same validation as the
file, so `--set train.batch_size=0` fails exactly like `batch_size: 0` would.
"""

from pathlib import Path
from typing import Any, Iterable

import yaml
from pydantic import ValidationError

from dnntrain.config.exceptions import ConfigLoadError, ConfigValidationError
from dnntrain.config.schema import DnnTrainConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """Parsed top-level mapping of a YAML file, or ConfigLoadError."""
    if not config_path.is_file():
        reason = "is not a file" if config_path.exists() else "not found"
        raise ConfigLoadError(f"Config file {reason}: {config_path}")

    try:
        parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"{config_path} must contain a YAML mapping, got {type(parsed).__name__}"
        )
    return parsed


def parse_override(text: str) -> tuple[tuple[str, ...], Any]:
    """
    Split `section.key=value` into its key path and a YAML-typed value.

    The value is read with yaml.safe_load, so `0.5` is a float, `[16, 8]` a
    list and `false` a bool.

    Raises:
        ConfigLoadError: If there is no '=', the key path is empty, or the
            value isn't valid YAML.
    """
    key_text, sep, value_text = text.partition("=")
    keys = tuple(part.strip() for part in key_text.split("."))
    if not sep or not all(keys):
        raise ConfigLoadError(f"Override must look like section.key=value, got '{text}'")

    try:
        value = yaml.safe_load(value_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid value in override '{text}': {err}") from err
    return keys, value


def apply_overrides(raw: dict[str, Any], overrides: Iterable[str]) -> dict[str, Any]:
    """
    Write overrides into a parsed config mapping, in order.

    Only sections already present in the file can be overridden, which keeps
    a typo in the section name from silently creating a new one.
    """
    for text in overrides:
        keys, value = parse_override(text)
        node: Any = raw
        for depth, key in enumerate(keys[:-1]):
            if not isinstance(node, dict) or key not in node:
                missing = ".".join(keys[: depth + 1])
                raise ConfigLoadError(f"Override '{text}' targets '{missing}', which is not in the config")
            node = node[key]
        if not isinstance(node, dict):
            raise ConfigLoadError(f"Override '{text}' does not point into a mapping")
        node[keys[-1]] = value
    return raw


def load_config(config_path: Path, overrides: Iterable[str] = ()) -> DnnTrainConfig:
    """
    Load, override and validate a config file.

    Args:
        config_path: YAML config file.
        overrides: `section.key=value` strings applied after parsing.

    Returns:
        The frozen DnnTrainConfig.

    Raises:
        ConfigLoadError: Missing file, unreadable file, bad YAML or a
            malformed override.
        ConfigValidationError: Missing fields, wrong types, unknown keys or
            out-of-range values.
    """
    raw_data = apply_overrides(_read_yaml_file(config_path), overrides)

    try:
        return DnnTrainConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err
