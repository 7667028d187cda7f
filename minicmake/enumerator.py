"""Recursive file listing backing ``file(GLOB_RECURSE ...)``."""
from __future__ import annotations

from pathlib import Path
from typing import List, Tuple
import os


def split_glob_pattern(pattern: str) -> Tuple[str, str | None]:
    """Split ``dir/*.ext`` into the root directory and a suffix filter.

    ``dir/*`` and ``dir/*.*`` have no filter. A pattern without ``/*`` is
    taken as a bare directory.
    """

    marker = pattern.find("/*")
    if marker < 0:
        return pattern, None
    directory = pattern[:marker]
    suffix = pattern[marker + 1:]
    if suffix.startswith("*"):
        suffix = suffix[1:]
        if not suffix or suffix == ".*":
            return directory, None
    return directory, suffix


def collect_files(directory: str, suffix: str | None = None, *, base: Path | None = None) -> List[str]:
    """Return regular files below *directory* whose names end with *suffix*.

    Paths are built by joining *directory* and entry names with ``/``, so a
    relative root yields relative paths. Entries are visited in name order.
    A relative *directory* is looked up below *base* when given. An
    unreadable or missing directory contributes nothing.
    """

    matches: List[str] = []
    try:
        location = base / directory if base is not None else Path(directory)
        with os.scandir(location) as iterator:
            entries = sorted(iterator, key=lambda entry: entry.name)
    except OSError:
        return matches

    prefix = directory.rstrip("/")
    for entry in entries:
        path = f"{prefix}/{entry.name}"
        try:
            if entry.is_dir(follow_symlinks=False):
                matches.extend(collect_files(path, suffix, base=base))
            elif entry.is_file():
                if suffix is None or entry.name.endswith(suffix):
                    matches.append(path)
        except OSError:
            continue
    return matches


def glob_recurse(pattern: str, *, base: Path | None = None) -> str:
    directory, suffix = split_glob_pattern(pattern)
    if not directory:
        return ""
    return " ".join(collect_files(directory, suffix, base=base))
