"""Trace output for soft failures and interpreter decisions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import IO, List
import sys


@dataclass(slots=True)
class Diagnostics:
    """Records trace messages and echoes them to *stream* when verbose."""

    verbose: bool = False
    stream: IO[str] | None = None
    messages: List[str] = field(default_factory=list)

    def trace(self, message: str) -> None:
        self.messages.append(message)
        if self.verbose:
            print(f"DEBUG: {message}", file=self.stream or sys.stderr)

    def contains(self, fragment: str) -> bool:
        return any(fragment in message for message in self.messages)
