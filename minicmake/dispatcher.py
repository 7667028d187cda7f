"""Routing of parsed commands to the handlers that mutate session state."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List

from .conditions import ExpressionEvaluator
from .enumerator import glob_recurse
from .reader import Command, parse_command
from .targets import DuplicateTargetError, TargetKind

if TYPE_CHECKING:  # pragma: no cover
    from .session import Session


C_FLAGS = "CMAKE_C_FLAGS"
SUBDIRECTORY_SCRIPT = "CMakeLists.txt"

SKIPPED_COMMANDS = frozenset(
    {
        "FetchContent_Declare",
        "FetchContent_MakeAvailable",
        "find_package",
        "target_link_options",
        "set_source_files_properties",
        "set_target_properties",
    }
)

MESSAGE_MODES = frozenset(
    {
        "STATUS",
        "NOTICE",
        "WARNING",
        "AUTHOR_WARNING",
        "SEND_ERROR",
        "FATAL_ERROR",
        "DEPRECATION",
        "VERBOSE",
        "DEBUG",
        "TRACE",
        "CHECK_START",
        "CHECK_PASS",
        "CHECK_FAIL",
    }
)

Handler = Callable[[Command], None]


class CommandDispatcher:
    """Executes commands against a :class:`Session`.

    Conditional commands are always evaluated so nesting stays balanced;
    every other command runs only while the innermost condition is active.
    Commands outside the supported vocabulary are ignored.
    """

    def __init__(self, session: "Session") -> None:
        self.session = session
        self.evaluator = ExpressionEvaluator(session.variables)
        self._conditionals: Dict[str, Handler] = {
            "if": self._cmd_if,
            "elseif": self._cmd_elseif,
            "else": self._cmd_else,
            "endif": self._cmd_endif,
        }
        self._handlers: Dict[str, Handler] = {
            "cmake_minimum_required": self._cmd_cmake_minimum_required,
            "project": self._cmd_project,
            "set": self._cmd_set,
            "message": self._cmd_message,
            "add_compile_options": self._cmd_add_compile_options,
            "add_definitions": self._cmd_add_definitions,
            "add_executable": self._cmd_add_executable,
            "add_library": self._cmd_add_library,
            "include": self._cmd_include,
            "add_subdirectory": self._cmd_add_subdirectory,
            "include_directories": self._cmd_include_directories,
            "target_include_directories": self._cmd_target_include_directories,
            "target_link_libraries": self._cmd_target_link_libraries,
            "file": self._cmd_file,
        }

    def execute(self, text: str) -> None:
        expanded = self.session.variables.expand(text)
        command = parse_command(expanded)

        conditional = self._conditionals.get(command.name)
        if conditional is not None:
            conditional(command)
            return

        if not self.session.conditions.active:
            self._trace(f"Skipping command (inactive condition): {expanded}")
            return

        handler = self._handlers.get(command.name)
        if handler is not None:
            handler(command)
        elif command.name in SKIPPED_COMMANDS:
            self._trace(f"Skipping {command.name}")
        else:
            self._trace(f"Unknown or skipped command: {expanded}")

    def _trace(self, message: str) -> None:
        self.session.diagnostics.trace(message)

    # -- conditionals -------------------------------------------------

    def _cmd_if(self, command: Command) -> None:
        conditions = self.session.conditions
        conditions.push(self.evaluator.evaluate(command.arguments))
        self._trace(f"Pushed condition: {int(conditions.active)} (level {conditions.depth})")

    def _cmd_elseif(self, command: Command) -> None:
        conditions = self.session.conditions
        conditions.replace(self.evaluator.evaluate(command.arguments))
        self._trace(f"elseif: condition {int(conditions.active)} (level {conditions.depth})")

    def _cmd_else(self, command: Command) -> None:
        conditions = self.session.conditions
        conditions.flip()
        self._trace(f"else reached. inverting cond to {int(conditions.active)}")

    def _cmd_endif(self, command: Command) -> None:
        conditions = self.session.conditions
        self._trace(f"Popped condition (was level {conditions.depth})")
        conditions.pop()

    # -- administrative -----------------------------------------------

    def _cmd_cmake_minimum_required(self, command: Command) -> None:
        self._trace(f"cmake_minimum_required: {command.arguments}")

    def _cmd_project(self, command: Command) -> None:
        words = command.words
        if not words:
            self._trace(f"project: parse failed: '{command.arguments}'")
            return
        variables = self.session.variables
        variables.set("PROJECT_NAME", words[0])
        variables.set("CMAKE_PROJECT_NAME", words[0])
        self._trace(f"project: set PROJECT_NAME = {words[0]}")

    def _cmd_message(self, command: Command) -> None:
        words = command.words
        if words and words[0] in MESSAGE_MODES:
            words = words[1:]
        print(" ".join(words), file=self.session.output)

    # -- variables and flags ------------------------------------------

    def _cmd_set(self, command: Command) -> None:
        words = command.words
        if not words:
            self._trace(f"set: parse failed: '{command.arguments}'")
            return
        key, values = words[0], words[1:]
        if key == C_FLAGS:
            values = self.session.platform.filter_flags(" ".join(values).split())
        self.session.variables.set(key, " ".join(values))

    def _cmd_add_compile_options(self, command: Command) -> None:
        variables = self.session.variables
        options = self.session.platform.filter_flags(" ".join(command.words).split())
        current = variables.get(C_FLAGS)
        variables.set(C_FLAGS, " ".join(part for part in [current, *options] if part))

    def _cmd_file(self, command: Command) -> None:
        words = command.words
        if not words or words[0] != "GLOB_RECURSE":
            self._trace(f"file: unsupported mode: '{command.arguments}'")
            return
        if len(words) < 3:
            self._trace(f"file(GLOB_RECURSE): parse fail '{command.arguments}'")
            return
        variable = words[1]
        pattern = " ".join(words[2:])
        if " " in pattern:
            self.session.variables.set(variable, pattern)
            return
        if not pattern.split("/*", 1)[0]:
            self._trace("file(GLOB_RECURSE): empty dir after expansion")
        result = glob_recurse(pattern, base=self.session.source_dir)
        self.session.variables.set(variable, result)
        self._trace(f"file(GLOB_RECURSE): {variable} = '{result}'")

    # -- targets ------------------------------------------------------

    def _declare(self, name: str, kind: TargetKind, sources: List[str]) -> None:
        try:
            target = self.session.targets.declare(name, kind, sources)
        except DuplicateTargetError as exc:
            self._trace(str(exc))
            return
        self._trace(f"declared {target.kind.value} '{target.name}' [{len(target.sources)} srcs]")

    def _cmd_add_executable(self, command: Command) -> None:
        words = command.words
        if not words:
            self._trace(f"add_executable: parse failed: '{command.arguments}'")
            return
        self._declare(words[0], TargetKind.EXECUTABLE, words[1:])

    def _cmd_add_library(self, command: Command) -> None:
        words = command.words
        if not words:
            self._trace(f"add_library: parse failed: '{command.arguments}'")
            return
        kind = TargetKind.from_library_token(words[1]) if len(words) > 1 else TargetKind.EXECUTABLE
        self._declare(words[0], kind, words[2:])

    def _cmd_add_definitions(self, command: Command) -> None:
        words = command.words
        if not words:
            return
        touched = self.session.targets.add_definition(words[0])
        self._trace(f"add_definitions to {len(touched)} targets: {words[0]}")

    def _cmd_include_directories(self, command: Command) -> None:
        directories = command.words
        self.session.global_includes.extend(directories)
        self._trace(f"include_directories (global): {' '.join(directories)}")

    def _cmd_target_include_directories(self, command: Command) -> None:
        words = command.words
        if len(words) < 3:
            self._trace(f"target_include_directories: parse failed: '{command.arguments}'")
            return
        name, scope, directories = words[0], words[1], words[2:]
        target = self.session.targets.get(name)
        if target is None:
            self._trace(f"target_include_directories: unknown target '{name}'")
            return
        target.includes.extend(directories)
        self._trace(f"target_include_directories: {name} {scope}")

    def _cmd_target_link_libraries(self, command: Command) -> None:
        words = command.words
        if len(words) < 2:
            self._trace(f"target_link_libraries: parse failed: '{command.arguments}'")
            return
        name, libraries = words[0], words[1:]
        if name not in self.session.targets:
            self._trace(f"target_link_libraries: unknown target '{name}'")
            return
        for source in self.session.targets.link(name, libraries):
            self._trace(f"Propagating from target '{source.name}' to '{name}'")

    # -- nested scripts -----------------------------------------------

    def _cmd_include(self, command: Command) -> None:
        words = command.words
        if not words:
            return
        self._run_nested(Path(words[0].strip("'")))

    def _cmd_add_subdirectory(self, command: Command) -> None:
        words = command.words
        if not words:
            return
        self._run_nested(Path(words[0]) / SUBDIRECTORY_SCRIPT)

    def _run_nested(self, path: Path) -> None:
        if not path.is_absolute():
            path = self.session.source_dir / path
        self._trace(f"include: {path}")
        if not self.session.run_file(path):
            self._trace(f"include failed: {path} not found")
