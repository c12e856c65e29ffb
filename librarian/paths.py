"""Dependency injection helpers.

Libraries receive their runtime and configuration via injection; this module
provides the default choices used by the CLI.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .loader import Loader
from .runtime import HostRuntime
from .settings import AppSettings
from .settings import LoaderConfig
from .settings import SettingsPaths

logger = logging.getLogger(__name__)


def create_settings(paths: SettingsPaths | None = None) -> AppSettings:
    """Create the settings manager with CLI path conventions."""
    return AppSettings(paths or SettingsPaths.default())


def create_runtime(search_path: Iterable[str | Path] | None = None) -> HostRuntime:
    """Create a host runtime. ``None`` uses the live ``sys.path`` as search path."""
    return HostRuntime(search_path=search_path)


def create_loader(config: LoaderConfig | None = None, runtime: HostRuntime | None = None) -> Loader:
    """Create a loader configured from ``config``.

    Args:
        config: Effective configuration (defaults when omitted)
        runtime: Runtime to resolve against (a fresh one when omitted)

    Returns:
        Configured, unregistered Loader
    """
    config = config or LoaderConfig()
    loader = Loader(runtime or create_runtime())
    loader.set_mode(config.mode).set_options(config.options).set_paths(config.paths).set_map(config.map)
    if config.fallbacks:
        loader.add(None, config.fallbacks)

    logger.debug(
        f"[librarian:config] mode={config.mode.name.lower()} prefixes={len(config.paths)} "
        f"fallbacks={len(config.fallbacks)} map={len(config.map)}"
    )
    return loader
