"""Interpreter session owning all state for one script tree."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, List, Mapping
import io
import sys

from .conditions import ConditionStack
from .diagnostics import Diagnostics
from .dispatcher import CommandDispatcher
from .emitter import MakefileEmitter
from .errors import ScriptNotFoundError
from .platforms import PlatformProfile, detect_profile
from .reader import iter_commands
from .targets import TargetRegistry
from .variables import VariableStore


DEFAULT_SCRIPT = "CMakeLists.txt"
DEFAULT_OUTPUT = "Makefile"
DEFAULT_COMPILER = "gcc"
DEFAULT_C_STANDARD = "99"


@dataclass(slots=True)
class SessionOptions:
    source_dir: Path
    platform: PlatformProfile = field(default_factory=detect_profile)
    compiler: str = DEFAULT_COMPILER
    c_standard: str = DEFAULT_C_STANDARD
    c_flags: str = ""
    variables: Mapping[str, str] = field(default_factory=dict)


class Session:
    """Variable table, condition stack, targets and global includes of one run."""

    def __init__(
        self,
        options: SessionOptions,
        *,
        diagnostics: Diagnostics | None = None,
        output: IO[str] | None = None,
    ) -> None:
        self.source_dir = options.source_dir
        self.platform = options.platform
        self.diagnostics = diagnostics or Diagnostics()
        self._output = output
        self.variables = VariableStore()
        self.conditions = ConditionStack()
        self.targets = TargetRegistry()
        self.global_includes: List[str] = []
        self._open_files: List[Path] = []
        self._seed_variables(options)
        self.dispatcher = CommandDispatcher(self)

    @property
    def output(self) -> IO[str]:
        return self._output or sys.stdout

    def _seed_variables(self, options: SessionOptions) -> None:
        source_dir = str(options.source_dir)
        self.variables.update(
            {
                "CMAKE_C_FLAGS": options.c_flags,
                "CMAKE_C_STANDARD": options.c_standard,
                "CMAKE_C_COMPILER": options.compiler,
                "CMAKE_SOURCE_DIR": source_dir,
                "CMAKE_CURRENT_LIST_DIR": source_dir,
            }
        )
        self.variables.update(self.platform.ambient_variables(options.compiler))
        self.variables.update(options.variables)

    def run(self, script: str | Path = DEFAULT_SCRIPT) -> None:
        """Interpret the root *script*; a missing root script is fatal."""

        path = Path(script)
        if not path.is_absolute():
            path = self.source_dir / path
        if not self.run_file(path):
            raise ScriptNotFoundError(path)

    def run_file(self, path: Path) -> bool:
        """Interpret *path*, returning ``False`` when it cannot be opened."""

        try:
            resolved = path.resolve()
            if resolved in self._open_files:
                self.diagnostics.trace(f"include: {path} is already being processed")
                return True
            handle = path.open("r", encoding="utf-8", errors="replace")
        except (OSError, ValueError):
            return False
        self._open_files.append(resolved)
        try:
            with handle:
                self._run_stream(handle)
        finally:
            self._open_files.pop()
        return True

    def run_text(self, text: str) -> None:
        self._run_stream(io.StringIO(text))

    def _run_stream(self, stream: IO[str]) -> None:
        for command in iter_commands(stream):
            self.diagnostics.trace(f"Read CMake command: [{command}]")
            self.dispatcher.execute(command)

    def emitter(self) -> MakefileEmitter:
        return MakefileEmitter.from_variables(
            self.targets,
            self.platform,
            self.variables,
            self.global_includes,
        )

    def render_makefile(self) -> str:
        return self.emitter().render()

    def write_makefile(self, path: Path) -> Path:
        if not path.is_absolute():
            path = self.source_dir / path
        path.write_text(self.render_makefile(), encoding="utf-8")
        return path
