"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from helmsman.config.domain.config import HelmsmanConfig
from helmsman.config.domain.observer import ConfigObserver
from helmsman.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from helmsman.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns a HelmsmanConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> HelmsmanConfig:
        """
        Load, interpolate, validate, and return a HelmsmanConfig from a YAML file.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the data does not match the schema.
        """
        raw = _parse_yaml(path=path)
        missing = collect_missing_vars(raw)
        if missing:
            raise MissingEnvVarsError(missing)
        cfg = _build_config(resolved=interpolate(raw))

        if cfg.permissions.mode == "auto":
            self._observer.config_auto_mode_warning()
        self._observer.config_loaded(
            path=str(path),
            model=cfg.backend.model,
            mcp_servers=len(cfg.mcp_servers),
        )
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason="invalid YAML") from exc


def _build_config(resolved: Any) -> HelmsmanConfig:
    if not isinstance(resolved, dict):
        raise ConfigValidationError("top level must be a mapping")
    try:
        return HelmsmanConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc
