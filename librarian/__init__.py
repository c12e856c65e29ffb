"""Librarian - class name to file path resolver and loader.

Maps namespaced class names onto a directory layout, executes the matching
file through a host runtime and verifies the class became declared.
"""

from .errors import ErrorKind
from .errors import LoaderError
from .errors import SettingsError
from .loader import Loader
from .loader import LoaderOptions
from .loader import Mode
from .runtime import HostRuntime
from .runtime import SymbolKind

__all__ = [
    "ErrorKind",
    "HostRuntime",
    "Loader",
    "LoaderError",
    "LoaderOptions",
    "Mode",
    "SettingsError",
    "SymbolKind",
]
