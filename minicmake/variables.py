"""Variable table and ``${name}`` reference expansion."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Tuple


_REFERENCE_OPEN = "${"
_REFERENCE_CLOSE = "}"


@dataclass(slots=True)
class VariableStore:
    """Flat string table where a later ``set`` replaces the previous value."""

    _values: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "VariableStore":
        store = cls()
        store.update(data)
        return store

    def get(self, key: str) -> str:
        return self._values.get(key, "")

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def update(self, data: Mapping[str, object] | Iterable[Tuple[str, object]]) -> None:
        items = data.items() if isinstance(data, Mapping) else data
        for key, value in items:
            self.set(str(key), "" if value is None else str(value))

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def expand(self, text: str) -> str:
        """Replace every ``${name}`` in *text* with its current value.

        The scan is a single left-to-right pass: text produced by a
        substitution is never scanned again, and an opening ``${`` with no
        closing brace is copied through unchanged.
        """

        if _REFERENCE_OPEN not in text:
            return text

        parts: list[str] = []
        position = 0
        while True:
            start = text.find(_REFERENCE_OPEN, position)
            if start < 0:
                break
            end = text.find(_REFERENCE_CLOSE, start + len(_REFERENCE_OPEN))
            if end < 0:
                break
            parts.append(text[position:start])
            parts.append(self.get(text[start + len(_REFERENCE_OPEN):end]))
            position = end + len(_REFERENCE_CLOSE)
        parts.append(text[position:])
        return "".join(parts)
