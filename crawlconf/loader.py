"""
YAML config loading and layer merging for crawl runs.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import yaml

from .errors import ConfigError
from .options import OPTION_ALIASES, STDIN_CONFIG_PATH


logger = logging.getLogger(__name__)


def load_yaml_config(path: str, stdin: TextIO | None = None) -> dict:
    """
    Load a run config from a YAML file, or from stdin for the stdin sentinel path.

    Empty documents load as {}.
    """
    if path == STDIN_CONFIG_PATH:
        stream = stdin if stdin is not None else sys.stdin
        content = stream.read()
    else:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            content = p.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config {path}: {exc}") from exc

    if not data:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping of option names to values")
    return data


def normalize_keys(cfg: dict) -> dict:
    """Map YAML keys (names or aliases) to canonical option names, dropping unknown keys."""
    normalized = {}
    for key, value in cfg.items():
        name = OPTION_ALIASES.get(key)
        if name is None:
            logger.debug("Ignoring unknown config key %r", key)
            continue
        normalized[name] = value
    return normalized


def merge_layers(*layers: dict) -> dict:
    """Merge option layers left to right; later layers win, None never overrides."""
    merged = {}
    for layer in layers:
        if isinstance(layer, dict):
            merged.update({k: v for k, v in layer.items() if v is not None})
    return merged


def read_seed_file(path: str) -> list[str]:
    """Read newline-delimited seed URLs, skipping blank lines, in file order."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read seed file {path}: {exc}") from exc
    return [line.strip() for line in text.split("\n") if line.strip()]
