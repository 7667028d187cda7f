"""Exception types raised by the interpreter and its configuration layer."""
from __future__ import annotations

from pathlib import Path


class MiniCMakeError(RuntimeError):
    """Base class for fatal interpreter failures."""


class ScriptNotFoundError(MiniCMakeError):
    """Raised when the root script cannot be opened."""

    def __init__(self, path: Path):
        super().__init__(f"{path.name} not found.")
        self.path = path


class ConfigurationError(ValueError):
    """Raised when a configuration file has invalid content."""
