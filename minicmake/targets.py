"""Build targets, their accumulated attributes and link propagation."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List


class TargetKind(Enum):
    EXECUTABLE = "executable"
    STATIC_LIBRARY = "static"
    SHARED_LIBRARY = "shared"

    @classmethod
    def from_library_token(cls, token: str) -> "TargetKind":
        normalized = token.strip().upper()
        if normalized == "STATIC":
            return cls.STATIC_LIBRARY
        if normalized == "SHARED":
            return cls.SHARED_LIBRARY
        return cls.EXECUTABLE

    @property
    def is_library(self) -> bool:
        return self is not TargetKind.EXECUTABLE


@dataclass(slots=True)
class Target:
    name: str
    kind: TargetKind = TargetKind.EXECUTABLE
    sources: List[str] = field(default_factory=list)
    defines: List[str] = field(default_factory=list)
    includes: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)

    def artifact_name(self, shared_suffix: str) -> str:
        if self.kind is TargetKind.STATIC_LIBRARY:
            return f"lib{self.name}.a"
        if self.kind is TargetKind.SHARED_LIBRARY:
            return f"lib{self.name}{shared_suffix}"
        return self.name


class DuplicateTargetError(ValueError):
    """Raised when a target name is declared twice."""


class TargetRegistry:
    """Declared targets in declaration order."""

    def __init__(self) -> None:
        self._targets: Dict[str, Target] = {}

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def get(self, name: str) -> Target | None:
        return self._targets.get(name)

    def declare(self, name: str, kind: TargetKind, sources: Iterable[str] = ()) -> Target:
        if name in self._targets:
            raise DuplicateTargetError(f"Target '{name}' is already declared")
        target = Target(name=name, kind=kind, sources=list(sources))
        self._targets[name] = target
        return target

    def add_definition(self, definition: str) -> List[Target]:
        """Append *definition* to every target declared so far."""

        touched = list(self._targets.values())
        for target in touched:
            target.defines.append(definition)
        return touched

    def link(self, name: str, libraries: Iterable[str]) -> List[Target]:
        """Record *libraries* as links of *name* and pull in linked targets' attributes.

        Each library name is appended to the destination's links. When the
        name matches a target declared before this call, that target's
        current includes, defines and links are appended as well. Nothing is
        resolved recursively: a dependency contributes only what it had
        accumulated at the moment of the link.

        Returns the registry targets whose attributes were copied.
        """

        destination = self._targets.get(name)
        if destination is None:
            return []
        propagated: List[Target] = []
        for library in libraries:
            destination.links.append(library)
            source = self._targets.get(library)
            if source is None:
                continue
            includes = list(source.includes)
            defines = list(source.defines)
            links = list(source.links)
            destination.includes.extend(includes)
            destination.defines.extend(defines)
            destination.links.extend(links)
            propagated.append(source)
        return propagated
