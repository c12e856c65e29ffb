"""Host runtime: live symbol table, resolution handler chain and file execution.

The loader never executes code or inspects symbols itself. It talks to a
``HostRuntime``, which owns:

- the symbol table (qualified name -> class object)
- the handler chain consulted when a name is not yet declared
- the primitive that executes a source file and declares what it defines
- the global search path (``sys.path`` unless overridden)
"""

from __future__ import annotations

import hashlib
import importlib.machinery
import importlib.util
import inspect
import logging
import os
import sys
from collections.abc import Callable
from collections.abc import Iterable
from enum import Enum
from types import ModuleType

logger = logging.getLogger(__name__)

Handler = Callable[[str], None]
Normalizer = Callable[[str], str]


class SymbolKind(Enum):
    """Kind of a declared symbol."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"


DECLARABLE_KINDS: frozenset[SymbolKind] = frozenset(SymbolKind)


def symbol_kind(obj: type) -> SymbolKind:
    """Classify a class object.

    Protocols and abstract base classes count as interfaces.
    """
    if issubclass(obj, Enum):
        return SymbolKind.ENUM
    if getattr(obj, "_is_protocol", False) or inspect.isabstract(obj):
        return SymbolKind.INTERFACE
    return SymbolKind.CLASS


class HostRuntime:
    """In-process runtime the loader resolves names against."""

    def __init__(self, search_path: Iterable[str | os.PathLike] | None = None):
        """Initialize an empty runtime.

        Args:
            search_path: Global search path entries. ``None`` means the live
                ``sys.path`` is consulted at lookup time.
        """
        self._symbols: dict[str, tuple[type, SymbolKind]] = {}
        self._handlers: list[tuple[Handler, Normalizer | None]] = []
        self._search_path = [os.fspath(p) for p in search_path] if search_path is not None else None

    # ----- Symbol table -----

    def declared(self, name: str, kinds: Iterable[SymbolKind] = DECLARABLE_KINDS) -> bool:
        """Tell whether ``name`` is live as one of ``kinds``.

        Pure lookup, never consults the handler chain.
        """
        entry = self._symbols.get(name)
        return entry is not None and entry[1] in set(kinds)

    def declare(self, name: str, obj: type) -> SymbolKind:
        """Make ``obj`` live under ``name``. Redeclaring a name replaces it."""
        if not isinstance(obj, type):
            raise TypeError(f"Only classes can be declared, got {type(obj).__name__} for '{name}'")
        kind = symbol_kind(obj)
        self._symbols[name] = (obj, kind)
        logger.debug(f"[runtime:declare] {name} ({kind.value})")
        return kind

    def get(self, name: str) -> type | None:
        """Return the live symbol for ``name`` or None."""
        entry = self._symbols.get(name)
        return entry[0] if entry else None

    def symbols(self) -> dict[str, SymbolKind]:
        """Return every declared name with its kind."""
        return {name: kind for name, (_obj, kind) in self._symbols.items()}

    # ----- Handler chain -----

    @property
    def handlers(self) -> tuple[Handler, ...]:
        return tuple(handler for handler, _normalize in self._handlers)

    def register_handler(self, handler: Handler, prepend: bool = False, normalize: Normalizer | None = None) -> None:
        """Add ``handler`` to the resolution chain (no-op if already there).

        Args:
            handler: Called with the requested name; declares it or does nothing.
            prepend: Put the handler in front of the chain.
            normalize: Maps a requested name to the name the handler declares
                it under (e.g. without a leading namespace separator).
        """
        if handler in self.handlers:
            return
        if prepend:
            self._handlers.insert(0, (handler, normalize))
        else:
            self._handlers.append((handler, normalize))

    def unregister_handler(self, handler: Handler) -> None:
        """Remove ``handler`` from the resolution chain if present."""
        self._handlers = [entry for entry in self._handlers if entry[0] != handler]

    def resolve(self, name: str) -> type:
        """Return the symbol for ``name``, calling handlers until one declares it.

        Raises:
            NameError: No handler declared the name.
        """
        if (found := self.get(name)) is not None:
            return found

        for handler, normalize in list(self._handlers):
            handler(name)
            declared_as = normalize(name) if normalize is not None else name
            if (found := self.get(declared_as)) is not None:
                return found

        raise NameError(f"Class, interface or enum '{name}' not found")

    # ----- Execution -----

    def execute(self, path: str | os.PathLike, namespace: str = "") -> ModuleType:
        """Execute the source file at ``path`` and declare the classes it defines.

        Each class whose ``__module__`` is the executed module is declared as
        ``namespace + cls.__name__``. Exceptions raised while executing the
        file propagate after the partially initialized module is discarded.
        """
        path = os.fspath(path)
        module_name = "_librarian_" + hashlib.sha256(os.path.abspath(path).encode()).hexdigest()[:12]

        loader = _SourceOnlyLoader(module_name, path)
        spec = importlib.util.spec_from_file_location(module_name, path, loader=loader)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot create a module spec for {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        logger.debug(f"[runtime:execute] {path} as {module_name}")
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise

        for obj in _defined_classes(module):
            self.declare(namespace + obj.__name__, obj)

        return module

    # ----- Global search path -----

    def search_path(self) -> list[str]:
        if self._search_path is not None:
            return list(self._search_path)
        return [entry or os.curdir for entry in sys.path if isinstance(entry, str)]

    def search_path_string(self) -> str:
        """Search path entries joined with ``os.pathsep``."""
        return os.pathsep.join(self.search_path())

    def resolve_on_search_path(self, file: str) -> str | None:
        """Return the absolute path of ``file`` under the first search entry holding it."""
        for entry in self.search_path():
            candidate = os.path.join(entry, file)
            if is_readable_file(candidate):
                return os.path.abspath(candidate)
        return None


class _SourceOnlyLoader(importlib.machinery.SourceFileLoader):
    """Compile straight from source; no bytecode cache is read or written.

    Files need not end in .py.
    """

    def get_code(self, fullname):
        path = self.get_filename(fullname)
        return self.source_to_code(self.get_data(path), path)


def _defined_classes(module: ModuleType) -> list[type]:
    return [
        obj
        for obj in vars(module).values()
        if isinstance(obj, type) and obj.__module__ == module.__name__
    ]


def is_readable_file(path: str) -> bool:
    """Tell whether ``path`` names an existing, readable regular file."""
    return os.path.isfile(path) and os.access(path, os.R_OK)
