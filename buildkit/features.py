"""
features.py

Responsibility: Hold the ordered set of features a module advertises and
serialize it into markdown list lines.

Rules:
- Keys are unique per registry; registering an existing key replaces its entry
  but keeps the position where the key was first seen.
- Serialization is deterministic (insertion order).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class Feature:
    """A named capability of a module, optionally linked to a document."""

    key: str
    content: str
    id: str | None = None

    def line(self, item_prefix: str = "- ", path_prefix: str = "") -> str:
        if self.id:
            return f"{item_prefix}[{self.key}]({path_prefix}{self.id}) : {self.content}"
        return f"{item_prefix}{self.key} : {self.content}"


class FeatureRegistry:
    def __init__(self) -> None:
        self._features: dict[str, Feature] = {}

    def register(self, key: str, content: str, id: str | None = None) -> None:
        # dict assignment keeps the original slot for an existing key
        self._features[key] = Feature(key=key, content=content, id=id)

    def get(self, key: str) -> Feature | None:
        return self._features.get(key)

    def serialize(self, item_prefix: str = "- ", path_prefix: str = "") -> str:
        """
        Render one line per feature. An empty registry yields "" and callers
        should drop the whole section in that case.
        """
        return "\n".join(f.line(item_prefix, path_prefix) for f in self._features.values())

    def __contains__(self, key: object) -> bool:
        return key in self._features

    def __iter__(self) -> Iterator[Feature]:
        return iter(self._features.values())

    def __len__(self) -> int:
        return len(self._features)

    def __repr__(self) -> str:
        return f"FeatureRegistry({list(self._features)!r})"
