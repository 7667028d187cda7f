"""Loading of the optional ``minicmake`` configuration file."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping
import json
import tomllib

import yaml

from .errors import ConfigurationError


CONFIG_STEM = "minicmake"

DECODERS: Dict[str, Callable[[str], Any]] = {
    ".toml": tomllib.loads,
    ".json": json.loads,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}
"""Configuration file suffixes and the decoder applied to their text."""

_DECODE_ERRORS = (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError)
_DEFAULT_KEYS = frozenset({"compiler", "c_standard", "c_flags", "platform", "script", "output"})


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Decode ``path`` into a mapping; an empty document yields ``{}``."""

    decoder = DECODERS.get(path.suffix.lower())
    if decoder is None:
        raise ConfigurationError(
            f"Unsupported configuration file '{path.name}'. Supported: {', '.join(DECODERS)}"
        )
    try:
        data = decoder(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Could not read configuration file '{path}': {exc}") from exc
    except _DECODE_ERRORS as exc:
        raise ConfigurationError(f"Could not parse configuration file '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Configuration file '{path}' must contain a mapping at the root")
    return data


def find_config_file(directory: Path) -> Path | None:
    """Return the single ``minicmake.*`` configuration file in ``directory``."""

    existing = [
        directory / f"{CONFIG_STEM}{suffix}"
        for suffix in DECODERS
        if (directory / f"{CONFIG_STEM}{suffix}").is_file()
    ]
    if len(existing) > 1:
        names = "', '".join(path.name for path in existing)
        raise ConfigurationError(f"Only one configuration file is allowed, found '{names}'")
    return existing[0] if existing else None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


@dataclass(slots=True)
class ProjectConfig:
    compiler: str | None = None
    c_standard: str | None = None
    c_flags: str | None = None
    platform: str | None = None
    script: str | None = None
    output: str | None = None
    variables: Dict[str, str] = field(default_factory=dict)
    path: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, path: Path | None = None) -> "ProjectConfig":
        defaults = data.get("defaults", {})
        if not isinstance(defaults, Mapping):
            raise ConfigurationError("[defaults] must be a table")
        unknown = {str(key) for key in defaults if str(key) not in _DEFAULT_KEYS}
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ConfigurationError(f"[defaults] contains unknown keys: {joined}")

        variables_section = data.get("variables", {})
        if not isinstance(variables_section, Mapping):
            raise ConfigurationError("[variables] must be a table")
        variables: Dict[str, str] = {}
        for key, value in variables_section.items():
            if isinstance(value, bool):
                variables[str(key)] = "ON" if value else "OFF"
            elif isinstance(value, (list, tuple)):
                variables[str(key)] = " ".join(str(item) for item in value)
            else:
                variables[str(key)] = "" if value is None else str(value)

        return cls(
            compiler=_optional_str(defaults.get("compiler")),
            c_standard=_optional_str(defaults.get("c_standard")),
            c_flags=_optional_str(defaults.get("c_flags")),
            platform=_optional_str(defaults.get("platform")),
            script=_optional_str(defaults.get("script")),
            output=_optional_str(defaults.get("output")),
            variables=variables,
            path=path,
        )

    @classmethod
    def load(cls, path: Path) -> "ProjectConfig":
        return cls.from_mapping(load_config_file(path), path=path)

    @classmethod
    def discover(cls, directory: Path, explicit: Path | None = None) -> "ProjectConfig":
        """Load *explicit* when given, else ``minicmake.*`` in *directory* if present."""

        if explicit is not None:
            if not explicit.is_file():
                raise ConfigurationError(f"Configuration file '{explicit}' does not exist")
            return cls.load(explicit)
        found = find_config_file(directory)
        if found is None:
            return cls()
        return cls.load(found)
