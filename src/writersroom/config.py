"""Configuration loading for the writersroom command line tools."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_CONFIG_NAME = "writersroom.yaml"
STORE_ENV_VAR = "WRITERSROOM_STORE"

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "edits": {
        "extensible_agents": False,
        "merge": True,
    },
    "markup": {
        "highlight_star_lines": True,
    },
    "paths": {
        "store": "data/writersroom.json",
    },
    "logging": {
        "level": "WARNING",
    },
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be used."""


@dataclass(slots=True)
class WritersRoomSettings:
    """Resolved settings shared by the CLI commands."""

    extensible_agents: bool = False
    merge: bool = True
    highlight_star_lines: bool = True
    store_path: Path = Path("data/writersroom.json")
    log_level: int = logging.WARNING

    @classmethod
    def from_config(cls, config: Mapping[str, Any], *, base_dir: Optional[Path] = None) -> "WritersRoomSettings":
        """Build settings from a parsed configuration mapping."""
        merged = _merge(DEFAULT_CONFIG_TEMPLATE, config)
        edits_cfg = merged.get("edits") or {}
        markup_cfg = merged.get("markup") or {}
        paths_cfg = merged.get("paths") or {}
        logging_cfg = merged.get("logging") or {}

        store_value = os.environ.get(STORE_ENV_VAR, "").strip() or str(paths_cfg.get("store") or "")
        if not store_value:
            raise ConfigError("paths.store must be a non-empty path")
        store_path = Path(store_value)
        if not store_path.is_absolute() and base_dir is not None:
            store_path = (base_dir / store_path).resolve()

        return cls(
            extensible_agents=_as_bool(edits_cfg.get("extensible_agents"), "edits.extensible_agents"),
            merge=_as_bool(edits_cfg.get("merge"), "edits.merge"),
            highlight_star_lines=_as_bool(markup_cfg.get("highlight_star_lines"), "markup.highlight_star_lines"),
            store_path=store_path,
            log_level=_as_level(logging_cfg.get("level")),
        )


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration from disk and return it as a dictionary."""
    if not config_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config: {error}") from error

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping at the top level.")
    return _merge(DEFAULT_CONFIG_TEMPLATE, data)


def load_settings(config_path: Optional[Path] = None) -> WritersRoomSettings:
    """Resolve settings from ``config_path`` (or the default file name)."""
    path = Path(config_path) if config_path is not None else Path(DEFAULT_CONFIG_NAME)
    config = load_config(path)
    return WritersRoomSettings.from_config(config, base_dir=path.resolve().parent)


def _merge(defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``overrides`` over a copy of ``defaults``."""
    merged = copy.deepcopy(dict(defaults))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    raise ConfigError(f"{name} must be a boolean")


def _as_level(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    raise ConfigError(f"logging.level must be a logging level name, got {value!r}")
