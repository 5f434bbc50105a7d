"""
readme.py

Responsibility: Per-module README configuration and rendering.

A `ReadmeContext` is filled in at configuration time (description, maturity,
template, extra properties, features) and rendered once by the caller.

Template syntax:
- `$name` or `${name}` is replaced by the string value of property `name`.
- A run of `$$`, or a `$` not followed by an identifier, is kept verbatim.
- Unknown placeholders are left verbatim (see `UNKNOWN_POLICIES`).

Substitution is a single left-to-right pass; substituted values are never
scanned again.
"""

from __future__ import annotations

import logging
import string
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Union

from buildkit.features import FeatureRegistry
from buildkit.renderer import RenderError, render_fragment

log = logging.getLogger(__name__)

PropertyValue = Union[str, bool, int, None, Callable[[], object]]

UNKNOWN_POLICIES = ("ignore", "warn", "error")

README_FILE = "README.md"


class Maturity(str, Enum):
    PROTOTYPE = "PROTOTYPE"
    EXPERIMENTAL = "EXPERIMENTAL"
    DEVELOPMENT = "DEVELOPMENT"
    STABLE = "STABLE"
    DEPRECATED = "DEPRECATED"

    @classmethod
    def parse(cls, label: str | None) -> "Maturity":
        if label is None or not str(label).strip():
            return cls.EXPERIMENTAL
        try:
            return cls(str(label).strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown maturity {label!r} (expected one of: {allowed})") from None

    def __str__(self) -> str:
        return self.value


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _Placeholders(Mapping):
    """
    Read-only view over the property mapping used during one substitution.

    Callable values are evaluated on first lookup and cached, so each is
    invoked at most once per render. Misses are recorded in `missing`.
    """

    def __init__(self, values: dict[str, PropertyValue]) -> None:
        self._values = values
        self._resolved: dict[str, str] = {}
        self.missing: list[str] = []

    def __getitem__(self, name: str) -> str:
        if name in self._resolved:
            return self._resolved[name]
        if name not in self._values:
            if name not in self.missing:
                self.missing.append(name)
            raise KeyError(name)
        value = self._values[name]
        if callable(value):
            # a KeyError escaping here would read as an unknown placeholder
            try:
                value = value()
            except KeyError as e:
                raise RenderError(f"Property {name!r} failed") from e
        text = _stringify(value)
        self._resolved[name] = text
        return text

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


class _Template(string.Template):
    """
    `string.Template` without the `$$` escape: a run of two or more `$` (e.g.
    `$$E = mc^2$$`) is kept verbatim, as is a `$` not followed by an identifier.
    """

    pattern = r"""
    \$(?:
      (?P<escaped>(?!))                    |
      (?P<named>(?a:[_a-z][_a-z0-9]*))     |
      {(?P<braced>(?a:[_a-z][_a-z0-9]*))}  |
      (?P<invalid>\$*)
    )
    """


def substitute(text: str, values: dict[str, PropertyValue], *, on_unknown: str = "ignore", source: object = None) -> str:
    """
    Replace `$name` / `${name}` placeholders in `text` with values from `values`.
    """
    if on_unknown not in UNKNOWN_POLICIES:
        raise ValueError(f"on_unknown must be one of {UNKNOWN_POLICIES}, got {on_unknown!r}")

    placeholders = _Placeholders(values)
    out = _Template(text).safe_substitute(placeholders)

    if placeholders.missing:
        names = ", ".join(f"${n}" for n in placeholders.missing)
        where = f" in {source}" if source is not None else ""
        if on_unknown == "error":
            raise RenderError(f"Unknown placeholders{where}: {names}")
        if on_unknown == "warn":
            log.warning("Unknown placeholders left as-is%s: %s", where, names)
    return out


@dataclass
class ReadmeContext:
    """README settings and substitution properties of one module."""

    name: str
    directory: Path = field(default_factory=Path)
    path: str = ""
    group: str = ""
    version: str = ""
    description: str | None = None
    maturity: Maturity = Maturity.EXPERIMENTAL
    template: Path | None = None
    inputs: list[Path] = field(default_factory=list)
    published: bool = False
    repositories: list[str] = field(default_factory=list)
    on_unknown: str = "ignore"
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    features: FeatureRegistry = field(default_factory=FeatureRegistry)

    @property
    def readme_file(self) -> Path:
        return Path(self.directory) / README_FILE

    def property(self, name: str, value: PropertyValue) -> None:
        """
        Register a substitution value. Callables are evaluated at render time,
        so later changes to whatever they read are visible in the output.
        """
        self.properties[name] = value

    def feature(self, key: str, content: str, id: str | None = None) -> None:
        self.features.register(key, content, id)

    def template_path(self) -> Path | None:
        """
        The template to render, or None when none is configured or it does not exist.
        """
        if self.template is None:
            return None
        path = Path(self.template)
        return path if path.is_file() else None

    def declared_inputs(self) -> list[Path]:
        """
        Existing files the rendered README depends on, for staleness tracking.
        """
        candidates = [self.template] if self.template is not None else []
        candidates.extend(self.inputs)
        return [Path(p) for p in candidates if Path(p).is_file()]

    def artifact(self) -> str:
        return render_fragment(
            "artifact.md",
            {
                "name": self.name,
                "group": self.group,
                "version": self.version,
                "published": self.published,
                "repositories": self.repositories,
            },
        )

    def values(self) -> dict[str, PropertyValue]:
        implicit: dict[str, PropertyValue] = {
            "name": self.name,
            "group": self.group,
            "version": self.version,
            "description": self.description or "",
            "maturity": self.maturity.value,
            "published": self.published,
            "features": self.features.serialize,
            "artifact": self.artifact,
            "modules": "",
        }
        # explicit properties win over the implicit ones
        return {**implicit, **self.properties}

    def render(self) -> str | None:
        """
        Render the README text, or None when there is no template to render.
        """
        template = self.template_path()
        if template is None:
            log.debug("No README template for %s (configured: %s); skipping", self.name, self.template)
            return None
        text = template.read_text(encoding="utf-8")
        return substitute(text, self.values(), on_unknown=self.on_unknown, source=template)

    def write(self, destination: str | Path | None = None) -> Path | None:
        """
        Render and overwrite the README file. Returns the written path, or None
        when nothing was rendered.
        """
        text = self.render()
        if text is None:
            return None
        return self.save(text, destination)

    def save(self, text: str, destination: str | Path | None = None) -> Path:
        out = Path(destination) if destination is not None else self.readme_file
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8", newline="\n")
        log.info("Wrote %s (%d chars)", out, len(text))
        return out
