"""
cli.py

Responsibility: CLI entrypoint for buildkit.

Commands:
- `readme`: render every module README, then the root README with the
  aggregated module list.
- `version`: write the project version to `build/project-version.txt`.

This module orchestrates; the actual work lives in:
- Project description parsing: `project.py`
- README rendering: `readme.py`, `aggregate.py`
- Publishing configuration: `publishing.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from buildkit.aggregate import render_root
from buildkit.project import DEFAULT_CONFIG, ConfigError, build_contexts, parse_project
from buildkit.publishing import PublishingError, configure_publishing, is_in_development
from buildkit.readme import ReadmeContext
from buildkit.renderer import RenderError

log = logging.getLogger(__name__)

VERSION_FILE = Path("build") / "project-version.txt"


class CLIError(RuntimeError):
    pass


def _root_dir(args: argparse.Namespace) -> Path:
    if args.root:
        return Path(args.root).resolve()
    return Path(args.config).resolve().parent


def _emit(ctx: ReadmeContext, text: str | None, *, dry_run: bool) -> None:
    if text is None:
        log.info("Skipping %s: no README template", ctx.path or ctx.name)
        return
    if dry_run:
        sys.stdout.write(f"==> {ctx.readme_file}\n{text}")
        if not text.endswith("\n"):
            sys.stdout.write("\n")
        return
    ctx.save(text)


def readme_cmd(args: argparse.Namespace) -> int:
    project = parse_project(args.config)
    publishing = configure_publishing(project.publishing, project.properties)
    root, children = build_contexts(project, _root_dir(args), repositories=publishing.urls())

    if args.on_unknown:
        for ctx in [root, *children]:
            ctx.on_unknown = args.on_unknown

    if args.module:
        wanted = args.module.strip("/").replace(":", "/")
        matches = [c for c in children if c.path == wanted]
        if not matches:
            raise CLIError(f"Unknown module: {args.module}")
        _emit(matches[0], matches[0].render(), dry_run=bool(args.dry_run))
        return 0

    for child in children:
        _emit(child, child.render(), dry_run=bool(args.dry_run))

    # the root README needs every child configured; it only reads their features
    _emit(root, render_root(root, children), dry_run=bool(args.dry_run))
    return 0


def version_cmd(args: argparse.Namespace) -> int:
    project = parse_project(args.config)
    out = _root_dir(args) / VERSION_FILE
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(project.version, encoding="utf-8")
    if is_in_development(project.version):
        log.warning("Version %s is a snapshot or dev version", project.version)
    log.info("Wrote %s", out)
    print(project.version)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="buildkit", description="Module README and feature matrix generator")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    def common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--config", default=DEFAULT_CONFIG, help=f"Project description file (default: {DEFAULT_CONFIG})")
        sp.add_argument("--root", default=None, help="Project root directory (default: directory of --config)")

    r = sub.add_parser("readme", help="Generate module READMEs and the root feature matrix")
    common(r)
    r.add_argument("--module", default=None, help="Only render the README of this module path (no aggregation)")
    r.add_argument("--dry-run", action="store_true", help="Print rendered READMEs instead of writing them")
    r.add_argument(
        "--strict",
        dest="on_unknown",
        action="store_const",
        const="error",
        default=None,
        help="Fail on unknown placeholders",
    )
    r.add_argument(
        "--warn-unknown",
        dest="on_unknown",
        action="store_const",
        const="warn",
        help="Log a warning for unknown placeholders",
    )
    r.set_defaults(func=readme_cmd)

    v = sub.add_parser("version", help="Write the project version to build/project-version.txt")
    common(v)
    v.set_defaults(func=version_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (CLIError, ConfigError, PublishingError, RenderError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
