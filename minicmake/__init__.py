"""Interpreter for a CMakeLists.txt subset that generates Makefiles."""
from __future__ import annotations

from .errors import ConfigurationError, MiniCMakeError, ScriptNotFoundError
from .session import Session, SessionOptions
from .cli import main

__all__ = [
    "ConfigurationError",
    "MiniCMakeError",
    "ScriptNotFoundError",
    "Session",
    "SessionOptions",
    "main",
]
