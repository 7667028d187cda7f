"""Per-platform linker conventions and ambient variables."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List
import platform


@dataclass(frozen=True, slots=True)
class PlatformProfile:
    name: str
    shared_suffix: str
    executable_link_rules: tuple[str, ...] = ()
    shared_link_rules: tuple[str, ...] = ()
    keeps_slash_flags: bool = False

    def shared_rules_for(self, library_name: str) -> List[str]:
        return [rule.format(name=library_name, suffix=self.shared_suffix) for rule in self.shared_link_rules]

    def filter_flags(self, flags: Iterable[str]) -> List[str]:
        """Drop ``/flag`` style switches on toolchains that do not understand them."""

        if self.keeps_slash_flags:
            return [flag for flag in flags if flag]
        return [flag for flag in flags if flag and not (flag.startswith("/") and len(flag) > 1)]

    def ambient_variables(self, compiler: str) -> Dict[str, str]:
        if self.name == "windows":
            variables = {"WIN32": "ON"}
            if compiler.lower() in {"cl", "cl.exe"}:
                variables["MSVC"] = "ON"
            return variables
        variables = {"UNIX": "ON"}
        if self.name == "darwin":
            variables["APPLE"] = "ON"
        return variables


PROFILES: Dict[str, PlatformProfile] = {
    "linux": PlatformProfile(
        name="linux",
        shared_suffix=".so",
        executable_link_rules=("-Wl,-rpath,.",),
        shared_link_rules=("-Wl,-rpath,.",),
    ),
    "darwin": PlatformProfile(
        name="darwin",
        shared_suffix=".dylib",
        executable_link_rules=("-Wl,-rpath,@loader_path",),
        shared_link_rules=(
            "-Wl,-install_name,@loader_path/lib{name}{suffix}",
            "-Wl,-rpath,@loader_path",
        ),
    ),
    "windows": PlatformProfile(
        name="windows",
        shared_suffix=".dll",
        keeps_slash_flags=True,
    ),
}

_ALIASES = {
    "macos": "darwin",
    "osx": "darwin",
    "win32": "windows",
    "win": "windows",
}


def get_profile(name: str) -> PlatformProfile:
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    try:
        return PROFILES[key]
    except KeyError as exc:
        supported = ", ".join(sorted(PROFILES))
        raise ValueError(f"Unknown platform '{name}'. Supported: {supported}") from exc


def detect_profile() -> PlatformProfile:
    system = platform.system().lower()
    if system in PROFILES:
        return PROFILES[system]
    if system.startswith(("cygwin", "msys", "mingw")):
        return PROFILES["windows"]
    return PROFILES["linux"]
