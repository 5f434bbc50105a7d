"""
project.py

Responsibility: Load the project description (YAML) into a deterministic,
typed model and turn it into README contexts.

Accepted inputs:
- a plain YAML file (`buildkit.yaml`), or
- a markdown file starting with YAML frontmatter delimited by '---'.

Module order is the order of the `modules` list in the file; nothing here
reorders it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from buildkit.features import Feature
from buildkit.readme import UNKNOWN_POLICIES, Maturity, ReadmeContext


class ConfigError(ValueError):
    pass


DEFAULT_CONFIG = "buildkit.yaml"


@dataclass(frozen=True)
class ReadmeSpec:
    """README settings for the root or for one module."""

    template: str | None = None
    inputs: tuple[str, ...] = ()
    properties: dict[str, str] = field(default_factory=dict)
    on_unknown: str = "ignore"


@dataclass(frozen=True)
class PublishingSpec:
    vcs: str | None = None
    connection: str | None = None
    developer_connection: str | None = None
    github: dict[str, str] | None = None
    repositories: dict[str, str] = field(default_factory=dict)
    sonatype: bool | str = False


@dataclass(frozen=True)
class ModuleSpec:
    path: str
    name: str
    description: str | None = None
    maturity: Maturity = Maturity.EXPERIMENTAL
    published: bool = False
    group: str | None = None
    version: str | None = None
    readme: ReadmeSpec = field(default_factory=ReadmeSpec)
    features: tuple[Feature, ...] = ()


@dataclass(frozen=True)
class Project:
    name: str
    group: str = ""
    version: str = "unspecified"
    description: str | None = None
    readme: ReadmeSpec = field(default_factory=ReadmeSpec)
    publishing: PublishingSpec | None = None
    modules: tuple[ModuleSpec, ...] = ()
    properties: dict[str, str] = field(default_factory=dict)


def _parse_yaml_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """
    If the markdown begins with YAML frontmatter delimited by '---', parse it.
    Returns (frontmatter_dict_or_none, remaining_markdown_text).
    """
    if not text.startswith("---\n"):
        return None, text

    end = text.find("\n---\n", 4)
    if end == -1:
        raise ConfigError("YAML frontmatter starts with '---' but no closing '---' was found.")

    fm_text = text[4:end]
    rest = text[end + len("\n---\n") :]
    return _load_mapping(fm_text), rest


def _load_mapping(text: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Project description must be a mapping/object at the top level.")
    return data


def _mapping(raw: Any, what: str) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"`{what}` must be an object/mapping when provided.")
    return raw


def _optional_str(raw: Any) -> str | None:
    if raw is None:
        return None
    return str(raw).strip() or None


def _bool(raw: Any, what: str, default: bool = False) -> bool:
    if raw is None:
        return default
    if not isinstance(raw, bool):
        raise ConfigError(f"`{what}` must be true or false, got {raw!r}")
    return raw


def _parse_readme(raw: Any, what: str) -> ReadmeSpec:
    data = _mapping(raw, what)

    inputs_raw = data.get("inputs") or []
    if not isinstance(inputs_raw, list):
        raise ConfigError(f"`{what}.inputs` must be a list when provided.")

    on_unknown = str(data.get("on_unknown") or "ignore").strip()
    if on_unknown not in UNKNOWN_POLICIES:
        raise ConfigError(f"`{what}.on_unknown` must be one of {', '.join(UNKNOWN_POLICIES)}, got {on_unknown!r}")

    properties = _mapping(data.get("properties"), f"{what}.properties")
    return ReadmeSpec(
        template=_optional_str(data.get("template")),
        inputs=tuple(str(p) for p in inputs_raw),
        properties={str(k): str(v) for k, v in properties.items()},
        on_unknown=on_unknown,
    )


def _parse_features(raw: Any, what: str) -> tuple[Feature, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigError(f"`{what}` must be a list when provided.")
    out: list[Feature] = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("key"):
            raise ConfigError(f"Every entry of `{what}` needs a `key`.")
        out.append(Feature(key=str(item["key"]), content=str(item.get("content") or ""), id=_optional_str(item.get("id"))))
    return tuple(out)


def _parse_module(raw: Any, index: int) -> ModuleSpec:
    what = f"modules[{index}]"
    if isinstance(raw, str):
        raw = {"path": raw}
    data = _mapping(raw, what)

    path = str(data.get("path") or "").strip().strip("/").replace(":", "/")
    if not path:
        raise ConfigError(f"`{what}` must define `path`.")

    try:
        maturity = Maturity.parse(data.get("maturity"))
    except ValueError as e:
        raise ConfigError(f"`{what}.maturity`: {e}") from e

    return ModuleSpec(
        path=path,
        name=_optional_str(data.get("name")) or path.rsplit("/", 1)[-1],
        description=_optional_str(data.get("description")),
        maturity=maturity,
        published=_bool(data.get("published"), f"{what}.published"),
        group=_optional_str(data.get("group")),
        version=_optional_str(data.get("version")),
        readme=_parse_readme(data.get("readme"), f"{what}.readme"),
        features=_parse_features(data.get("features"), f"{what}.features"),
    )


def _parse_publishing(raw: Any) -> PublishingSpec | None:
    if raw is None:
        return None
    data = _mapping(raw, "publishing")

    github = data.get("github")
    if github is not None:
        github = {str(k): str(v) for k, v in _mapping(github, "publishing.github").items()}
        if "project" not in github or "org" not in github:
            raise ConfigError("`publishing.github` must define `project` and `org`.")

    sonatype = data.get("sonatype")
    if isinstance(sonatype, str):
        # a string is the Sonatype root URL
        if not sonatype.startswith(("http://", "https://")):
            raise ConfigError(f"`publishing.sonatype` must be true, false or a URL, got {sonatype!r}")
    else:
        sonatype = _bool(sonatype, "publishing.sonatype")

    repositories = _mapping(data.get("repositories"), "publishing.repositories")
    return PublishingSpec(
        vcs=_optional_str(data.get("vcs")),
        connection=_optional_str(data.get("connection")),
        developer_connection=_optional_str(data.get("developer_connection")),
        github=github,
        repositories={str(k): str(v) for k, v in repositories.items()},
        sonatype=sonatype,
    )


def parse_project(config_path: str | Path) -> Project:
    """
    Parse a project description file into a `Project`.

    Top-level keys:
    - name: str (required)
    - group, version, description: str
    - readme: {template, inputs, properties, on_unknown}
    - publishing: {vcs, connection, developer_connection, github, repositories, sonatype}
    - modules: list of {path, name, description, maturity, published, readme, features}
    - properties: dict (publishing credentials, looked up by convention)
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Project file does not exist: {path}")
    text = path.read_text(encoding="utf-8")

    frontmatter, _rest = _parse_yaml_frontmatter(text)
    data = frontmatter if frontmatter is not None else _load_mapping(text)

    name = str(data.get("name") or "").strip()
    if not name:
        raise ConfigError("Project must define `name`.")

    modules_raw = data.get("modules") or []
    if not isinstance(modules_raw, list):
        raise ConfigError("`modules` must be a list when provided.")
    modules = tuple(_parse_module(raw, i) for i, raw in enumerate(modules_raw))

    seen: set[str] = set()
    for module in modules:
        if module.path in seen:
            raise ConfigError(f"Duplicate module path: {module.path}")
        seen.add(module.path)

    properties = _mapping(data.get("properties"), "properties")
    return Project(
        name=name,
        group=str(data.get("group") or "").strip(),
        version=str(data.get("version") or "unspecified").strip(),
        description=_optional_str(data.get("description")),
        readme=_parse_readme(data.get("readme"), "readme"),
        publishing=_parse_publishing(data.get("publishing")),
        modules=modules,
        properties={str(k): str(v) for k, v in properties.items()},
    )


def _context(
    *,
    name: str,
    directory: Path,
    path: str,
    group: str,
    version: str,
    description: str | None,
    maturity: Maturity,
    published: bool,
    readme: ReadmeSpec,
    repositories: list[str],
    features: tuple[Feature, ...] = (),
) -> ReadmeContext:
    ctx = ReadmeContext(
        name=name,
        directory=directory,
        path=path,
        group=group,
        version=version,
        description=description,
        maturity=maturity,
        template=directory / readme.template if readme.template else None,
        inputs=[directory / p for p in readme.inputs],
        published=published,
        repositories=list(repositories),
        on_unknown=readme.on_unknown,
    )
    for key, value in readme.properties.items():
        ctx.property(key, value)
    for f in features:
        ctx.feature(f.key, f.content, f.id)
    return ctx


def build_contexts(
    project: Project,
    root_dir: str | Path,
    *,
    repositories: list[str] | None = None,
) -> tuple[ReadmeContext, list[ReadmeContext]]:
    """
    Create the root README context and one context per module, in declared order.

    Template and input paths resolve against the directory of their module.
    """
    root = Path(root_dir)
    repos = repositories or []

    root_ctx = _context(
        name=project.name,
        directory=root,
        path="",
        group=project.group,
        version=project.version,
        description=project.description,
        maturity=Maturity.EXPERIMENTAL,
        published=False,
        readme=project.readme,
        repositories=repos,
    )

    children = [
        _context(
            name=m.name,
            directory=root / m.path,
            path=m.path,
            group=m.group or project.group,
            version=m.version or project.version,
            description=m.description,
            maturity=m.maturity,
            published=m.published,
            readme=m.readme,
            repositories=repos,
            features=m.features,
        )
        for m in project.modules
    ]
    return root_ctx, children
