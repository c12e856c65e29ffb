"""Class name to file path resolver and loader.

Names follow a namespace convention (``App\\Models\\User``, ``Zend_Log_Writer``)
that maps onto a directory layout:

- namespace separators become directory separators
- underscores in the final class segment become directory separators
- the configured file extension is appended

Resolution order (first match wins):
1. Explicit map (exact name -> file, no filesystem probes)
2. Prefix table, in registration order, for prefixes matching the name
3. Fallback directories, in registration order
4. Runtime global search path (only when ``global_search_path`` is enabled)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from collections.abc import Mapping
from enum import IntEnum
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .errors import ErrorKind
from .errors import LoaderError
from .runtime import HostRuntime
from .runtime import is_readable_file

logger = logging.getLogger(__name__)

PathLike = str | os.PathLike

# Case folding for name matching touches ASCII letters only, so offsets found in
# the folded text stay valid in the original.
_ASCII_FOLD = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


class Mode(IntEnum):
    """Operational mode controlling which failures raise."""

    SILENT = 0  # never raise
    NORMAL = 1  # raise when no file is found
    DEBUG = 2  # also raise when already loaded or not declared after loading

    @classmethod
    def parse(cls, value: Mode | int | str) -> Mode:
        """Accept a Mode, its integer value or its (case-insensitive) name."""
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                valid = ", ".join(m.name.lower() for m in cls)
                raise ValueError(f"Invalid mode '{value}' (expected one of: {valid})") from None
        return cls(value)


class LoaderOptions(BaseModel):
    """Loader options."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    separator: str = Field(default="\\", min_length=1, description="Token dividing namespace segments")
    extension: str = Field(default=".py", description="Suffix appended to computed file paths")
    global_search_path: bool = Field(
        default=False, description="Consult the runtime global search path when everything else misses"
    )


class Loader:
    """Resolves symbolic names to files and loads them through a ``HostRuntime``.

    Usage:
        loader = Loader().set_mode(Mode.DEBUG)
        loader.add("App\\\\", "/path/to/project/src")
        loader.register()
        loader.runtime.resolve("App\\\\Models\\\\User")
    """

    def __init__(self, runtime: HostRuntime | None = None):
        self.runtime = runtime if runtime is not None else HostRuntime()
        self._mode = Mode.NORMAL
        self._options = LoaderOptions()
        self._paths: dict[str, list[str]] = {}
        self._fallbacks: list[str] = []
        self._map: dict[str, str] = {}
        self._loaded: dict[str, str] = {}
        self._tried_paths: list[str] = []

    # ----- Registration -----

    def register(self, prepend: bool = False) -> None:
        """Install ``load`` in the runtime's resolution chain."""
        self.runtime.register_handler(self.load, prepend=bool(prepend), normalize=self.canonical_name)

    def unregister(self) -> None:
        """Remove ``load`` from the runtime's resolution chain."""
        self.runtime.unregister_handler(self.load)

    # ----- Configuration -----

    def get_options(self) -> LoaderOptions:
        return self._options

    def set_options(self, options: LoaderOptions | Mapping[str, Any]) -> Loader:
        """Overwrite the given option keys, keeping the others.

        Raises:
            pydantic.ValidationError: Unknown key or invalid value.
        """
        if isinstance(options, LoaderOptions):
            options = options.model_dump(exclude_unset=True)
        self._options = LoaderOptions.model_validate({**self._options.model_dump(), **dict(options)})
        return self

    def get_mode(self) -> Mode:
        return self._mode

    def set_mode(self, mode: Mode | int | str) -> Loader:
        self._mode = Mode.parse(mode)
        return self

    # ----- Paths -----

    def add(self, prefix: Any, paths: PathLike | Iterable[PathLike]) -> None:
        """Add directories for a class name prefix.

        Args:
            prefix: Class name prefix, e.g. ``'Tribe\\\\Framework\\\\'`` or
                ``'Zend_'``. Anything that is not a string adds ``paths`` as
                fallback directories instead.
            paths: A directory or a sequence of directories. Classes live in
                subdirectories named after their full namespace, e.g.
                ``'<path>/Tribe/Framework/Router.py'``.
        """
        paths = _as_list(paths)

        if not isinstance(prefix, str):
            self._fallbacks.extend(paths)
            return

        parsed = [path.rstrip(os.sep) for path in paths]
        self._paths.setdefault(prefix, []).extend(parsed)

    def get_paths(self) -> dict[str, list[str]]:
        return {prefix: list(dirs) for prefix, dirs in self._paths.items()}

    def set_paths(self, paths: Mapping[Any, PathLike | Iterable[PathLike]]) -> Loader:
        """Add every prefix -> directories pair; existing entries are kept.

        Example:
            loader.set_paths({
                "Zend_": "/path/to/zend/library",
                "Tribe\\\\": ["/path/to/Tribe.Router/src", "/path/to/Tribe.Framework/src"],
            })
        """
        for prefix, dirs in paths.items():
            self.add(prefix, dirs)
        return self

    def get_fallbacks(self) -> list[str]:
        return list(self._fallbacks)

    def get_map(self) -> dict[str, str]:
        return dict(self._map)

    def set_map(self, mapping: Mapping[str, PathLike]) -> Loader:
        """Merge exact name -> file mappings; later keys overwrite."""
        self._map.update({name: os.fspath(path) for name, path in mapping.items()})
        return self

    # ----- Queries -----

    def loaded(self) -> dict[str, str]:
        """Names loaded by this loader, mapped to the file that declared them."""
        return dict(self._loaded)

    @property
    def tried_paths(self) -> list[str]:
        """Paths probed during the most recent ``find``."""
        return list(self._tried_paths)

    def declared(self, name: str) -> bool:
        """Tell whether a class, interface or enum ``name`` is live in the runtime."""
        return self.runtime.declared(name)

    # ----- Loading -----

    def load(self, name: str) -> None:
        """Load a class, interface or enum by name.

        Raises:
            LoaderError: ALREADY_LOADED (debug mode), NOT_READABLE (normal and
                debug modes) or NOT_DECLARED (debug mode).
        """
        name = self._strip_separator(name)

        if self.declared(name):
            if self._mode is Mode.DEBUG:
                raise LoaderError(
                    f"Class, interface or enum `{name}` is already loaded.", ErrorKind.ALREADY_LOADED, name=name
                )
            return

        file = self.find(name)

        if not file:
            if self._mode is not Mode.SILENT:
                message = "\n".join(
                    [f"Cannot find class, interface or enum `{name}` in the following paths:", *self._tried_paths]
                )
                raise LoaderError(message, ErrorKind.NOT_READABLE, name=name, tried_paths=self._tried_paths)
            logger.debug(f"[librarian:load] {name} not found (silent)")
            return

        logger.debug(f"[librarian:load] {name} -> {file}")
        self.runtime.execute(file, namespace=self._namespace_prefix(name))

        if not self.declared(name):
            if self._mode is Mode.DEBUG:
                raise LoaderError(
                    f"File {file} did not declare class, interface or enum `{name}`.",
                    ErrorKind.NOT_DECLARED,
                    name=name,
                )
            logger.debug(f"[librarian:load] {file} did not declare {name}")
            return

        self._loaded[name] = file
        logger.info(f"[librarian:load] {name} loaded from {file}")

    def find(self, name: str) -> str | None:
        """Find the file for a class, interface or enum.

        Returns:
            Path to the file, or None when nothing matched.
        """
        sep = self._options.separator
        name = self._strip_separator(name)

        if name in self._map:
            logger.debug(f"[librarian:find] {name} -> map ({self._map[name]})")
            return self._map[name]

        self._tried_paths = []

        pos = self._rfind_separator(name)
        if pos != -1:
            namespace = name[:pos].replace(sep, os.sep) + os.sep
            class_name = name[pos + len(sep) :]
        else:
            namespace = ""
            class_name = name

        file = namespace + class_name.replace("_", os.sep) + self._options.extension

        for prefix, dirs in self._paths.items():
            if not _fold(name).startswith(_fold(prefix)):
                continue
            if found := self._lookup(file, dirs):
                logger.debug(f"[librarian:find] {name} -> prefix '{prefix}' ({found})")
                return found

        for fallback in self._fallbacks:
            if found := self._lookup(file, [fallback]):
                logger.debug(f"[librarian:find] {name} -> fallback ({found})")
                return found

        if self._options.global_search_path:
            self._tried_paths.append(self.runtime.search_path_string())
            found = self.runtime.resolve_on_search_path(file)
            logger.debug(f"[librarian:find] {name} -> search path ({found})")
            return found

        logger.debug(f"[librarian:find] {name} not found after {len(self._tried_paths)} paths")
        return None

    def _lookup(self, file: str, paths: Iterable[str]) -> str | None:
        """Return the first ``path/file`` that is a readable regular file."""
        for path in paths:
            self._tried_paths.append(path)
            found = path + os.sep + file
            if is_readable_file(found):
                return found
        return None

    def canonical_name(self, name: str) -> str:
        """``name`` as it is declared: leading separators removed."""
        return self._strip_separator(name)

    def _strip_separator(self, name: str) -> str:
        sep = self._options.separator
        while name.startswith(sep):
            name = name[len(sep) :]
        return name

    def _rfind_separator(self, name: str) -> int:
        """Offset of the last separator in ``name``, ignoring ASCII case; -1 if absent."""
        return _fold(name).rfind(_fold(self._options.separator))

    def _namespace_prefix(self, name: str) -> str:
        """Leading namespace of ``name`` including the trailing separator."""
        pos = self._rfind_separator(name)
        return name[: pos + len(self._options.separator)] if pos != -1 else ""

    def __repr__(self) -> str:
        return f"Loader(mode={self._mode.name.lower()}, prefixes={len(self._paths)}, fallbacks={len(self._fallbacks)})"


def _fold(text: str) -> str:
    return text.translate(_ASCII_FOLD)


def _as_list(paths: PathLike | Iterable[PathLike]) -> list[str]:
    if isinstance(paths, (str, os.PathLike)):
        return [os.fspath(paths)]
    return [os.fspath(path) for path in paths]
