"""Rendering of declared targets into Makefile text."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Dict, Iterable, List, Sequence

from .platforms import PlatformProfile
from .targets import Target, TargetKind, TargetRegistry
from .variables import VariableStore


STANDARD_FLAGS: Dict[str, str] = {
    "11": "-std=c11",
    "17": "-std=c17",
    "23": "-std=c23",
}
LIBRARY_SEARCH_FLAG = "-L."
ARCHIVER = ("ar", "rcs")


def object_name(source: str) -> str:
    return f"{PurePath(source).stem}.o"


def _join(parts: Iterable[str]) -> str:
    return " ".join(part for part in parts if part)


@dataclass(slots=True)
class MakefileEmitter:
    """Writes ``all``, one rule per target and ``clean`` in declaration order.

    Compiler, flags and language standard are read from the variable table
    when the emitter is created, so the values in effect at the end of the
    script apply to every recipe.
    """

    targets: TargetRegistry
    platform: PlatformProfile
    compiler: str = "gcc"
    flags: str = ""
    standard: str = "99"
    global_includes: Sequence[str] = field(default_factory=list)

    @classmethod
    def from_variables(
        cls,
        targets: TargetRegistry,
        platform: PlatformProfile,
        variables: VariableStore,
        global_includes: Sequence[str],
    ) -> "MakefileEmitter":
        return cls(
            targets=targets,
            platform=platform,
            compiler=variables.get("CMAKE_C_COMPILER") or "gcc",
            flags=variables.get("CMAKE_C_FLAGS") or "",
            standard=variables.get("CMAKE_C_STANDARD") or "",
            global_includes=list(global_includes),
        )

    def artifact(self, target: Target) -> str:
        return target.artifact_name(self.platform.shared_suffix)

    def render(self) -> str:
        targets = list(self.targets)
        lines: List[str] = [".PHONY: all clean", ""]
        lines.append(_join(["all:", *(self.artifact(target) for target in targets)]))
        lines.append("")
        for target in targets:
            lines.extend(self._render_target(target))
            lines.append("")
        lines.extend(self._render_clean(targets))
        return "\n".join(lines) + "\n"

    def _render_target(self, target: Target) -> List[str]:
        artifact = self.artifact(target)
        prerequisites = list(target.sources)
        if target.kind is TargetKind.EXECUTABLE:
            prerequisites.extend(self._linked_artifacts(target))
        header = _join([f"{artifact}:", *prerequisites])

        if target.kind is TargetKind.STATIC_LIBRARY:
            compile_line = _join([self.compiler, self.flags, "-c", *self._compile_flags(target), *target.sources])
            objects = [object_name(source) for source in target.sources]
            archive_line = _join([*ARCHIVER, artifact, *objects])
            return [header, f"\t{compile_line}", f"\t{archive_line}"]

        if target.kind is TargetKind.SHARED_LIBRARY:
            leading = [
                self.compiler,
                "-shared",
                "-fPIC",
                self.flags,
                LIBRARY_SEARCH_FLAG,
                *self.platform.shared_rules_for(target.name),
            ]
        else:
            leading = [
                self.compiler,
                self.flags,
                LIBRARY_SEARCH_FLAG,
                *self.platform.executable_link_rules,
            ]
        recipe = _join(
            [
                *leading,
                *self._compile_flags(target),
                *target.sources,
                *(f"-l{library}" for library in target.links),
                "-o",
                artifact,
            ]
        )
        return [header, f"\t{recipe}"]

    def _compile_flags(self, target: Target) -> List[str]:
        flags: List[str] = []
        standard_flag = STANDARD_FLAGS.get(self.standard)
        if standard_flag:
            flags.append(standard_flag)
        flags.extend(target.defines)
        flags.extend(f"-I{directory}" for directory in target.includes)
        flags.extend(f"-I{directory}" for directory in self.global_includes)
        return flags

    def _linked_artifacts(self, target: Target) -> List[str]:
        artifacts: List[str] = []
        for library in target.links:
            linked = self.targets.get(library)
            if linked is None or not linked.kind.is_library:
                continue
            artifact = self.artifact(linked)
            if artifact not in artifacts:
                artifacts.append(artifact)
        return artifacts

    def _render_clean(self, targets: Sequence[Target]) -> List[str]:
        removals = ["*.o", "*.a", f"*{self.platform.shared_suffix}"]
        removals.extend(self.artifact(target) for target in targets)
        return ["clean:", f"\t{_join(['rm', '-f', *removals])}"]
