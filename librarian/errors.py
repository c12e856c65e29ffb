"""Errors raised by the loader.

A single exception type carries a discriminant (``ErrorKind``) telling the
caller which step of the load state machine failed:

- ALREADY_LOADED: the name was already declared (debug mode only)
- NOT_READABLE: no readable file was found for the name
- NOT_DECLARED: the file was executed but did not declare the name (debug mode only)
"""

from __future__ import annotations

from enum import IntEnum


class ErrorKind(IntEnum):
    """Which step of ``Loader.load`` failed."""

    ALREADY_LOADED = 0
    NOT_READABLE = 1
    NOT_DECLARED = 2


class LoaderError(Exception):
    """Raised by ``Loader.load`` according to the operational mode."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        *,
        name: str | None = None,
        tried_paths: list[str] | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.name = name
        self.tried_paths = list(tried_paths or [])

    @property
    def code(self) -> int:
        """Integer value of the error kind."""
        return int(self.kind)

    def __repr__(self) -> str:
        return f"LoaderError({self.kind.name}, name={self.name!r})"


class SettingsError(Exception):
    """Raised when a settings file cannot be read or validated."""
