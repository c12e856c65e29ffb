"""Settings management for librarian.

Simple, scope-aware YAML settings. Scope priority (most specific wins):
1. local (.librarian/settings.local.yaml) - gitignored, machine-specific
2. project (.librarian/settings.yaml) - committed, team-shared
3. global (~/.librarian/settings.yaml) - user defaults

Relative directories in a settings file are resolved against the directory
holding that file, so merged settings always carry absolute paths.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from .errors import SettingsError
from .loader import LoaderOptions
from .loader import Mode

logger = logging.getLogger(__name__)

MODE_ENV_VAR = "LIBRARIAN_MODE"


class LoaderConfig(BaseModel):
    """Complete loader configuration."""

    mode: Mode = Field(default=Mode.NORMAL, description="silent, normal or debug")
    options: LoaderOptions = Field(default_factory=LoaderOptions)
    paths: dict[str, list[str]] = Field(default_factory=dict, description="Class name prefix -> directories")
    fallbacks: list[str] = Field(default_factory=list, description="Directories searched when no prefix matches")
    map: dict[str, str] = Field(default_factory=dict, description="Exact class name -> file")

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> Mode:
        return Mode.parse(value)

    @field_validator("paths", mode="before")
    @classmethod
    def _listify_paths(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {prefix: [dirs] if isinstance(dirs, str) else dirs for prefix, dirs in value.items()}
        return value

    @field_validator("fallbacks", mode="before")
    @classmethod
    def _listify_fallbacks(cls, value: Any) -> Any:
        return [value] if isinstance(value, str) else value

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict suitable for YAML output."""
        return {
            "mode": self.mode.name.lower(),
            "options": self.options.model_dump(),
            "paths": self.paths,
            "fallbacks": self.fallbacks,
            "map": self.map,
        }


@dataclass
class SettingsPaths:
    """Standard paths for settings files."""

    global_settings: Path
    project_settings: Path
    local_settings: Path

    @classmethod
    def default(cls) -> SettingsPaths:
        """Create default paths for the standard librarian layout."""
        return cls(
            global_settings=Path.home() / ".librarian" / "settings.yaml",
            project_settings=Path.cwd() / ".librarian" / "settings.yaml",
            local_settings=Path.cwd() / ".librarian" / "settings.local.yaml",
        )


class AppSettings:
    """Scope-aware settings loader.

    Usage:
        settings = AppSettings()
        config = settings.get_loader_config()
    """

    def __init__(self, paths: SettingsPaths | None = None) -> None:
        self.paths = paths or SettingsPaths.default()

    def get_merged_settings(self) -> dict[str, Any]:
        """Load and merge settings from all scopes (missing files are skipped)."""
        result: dict[str, Any] = {}
        for path in [self.paths.global_settings, self.paths.project_settings, self.paths.local_settings]:
            if path.exists():
                result = _deep_merge(result, read_settings_file(path))
        return result

    def get_loader_config(self, extra: Path | None = None) -> LoaderConfig:
        """Build the effective loader configuration.

        Args:
            extra: Optional explicit settings file merged over all scopes.

        Raises:
            SettingsError: A settings file is malformed or fails validation.
        """
        merged = self.get_merged_settings()
        if extra is not None:
            if not extra.exists():
                raise SettingsError(f"Settings file not found: {extra}")
            merged = _deep_merge(merged, read_settings_file(extra))

        if env_mode := os.getenv(MODE_ENV_VAR):
            logger.debug(f"[librarian:settings] mode from {MODE_ENV_VAR}={env_mode}")
            merged["mode"] = env_mode

        try:
            return LoaderConfig.model_validate(merged)
        except ValidationError as e:
            raise SettingsError(f"Invalid librarian settings: {e}") from e


def read_settings_file(path: Path) -> dict[str, Any]:
    """Read one settings file, anchoring its relative directories to the file.

    Raises:
        SettingsError: The file is not valid YAML or not a mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SettingsError(f"Failed to parse {path}: {e}") from e

    if not isinstance(content, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping, got {type(content).__name__}")

    return _anchor_paths(content, path.parent)


def _anchor_paths(content: dict[str, Any], base: Path) -> dict[str, Any]:
    """Resolve relative directories and files against ``base``."""
    result = dict(content)

    paths = result.get("paths")
    if isinstance(paths, dict):
        result["paths"] = {
            prefix: [_anchor(d, base) for d in dirs] if isinstance(dirs, list) else _anchor(dirs, base)
            for prefix, dirs in paths.items()
        }

    fallbacks = result.get("fallbacks")
    if isinstance(fallbacks, list):
        result["fallbacks"] = [_anchor(d, base) for d in fallbacks]
    elif isinstance(fallbacks, str):
        result["fallbacks"] = [_anchor(fallbacks, base)]

    mapping = result.get("map")
    if isinstance(mapping, dict):
        result["map"] = {name: _anchor(file, base) for name, file in mapping.items()}

    return result


def _anchor(value: Any, base: Path) -> Any:
    if not isinstance(value, str):
        return value
    expanded = Path(value).expanduser()
    return os.path.normpath(expanded if expanded.is_absolute() else base / expanded)


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts, overlay wins."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
