"""UI helpers for the CLI environment."""

from .error_display import display_loader_error

__all__ = ["display_loader_error"]
