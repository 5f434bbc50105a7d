"""
aggregate.py

Responsibility: Build the root README's module list out of child module
contexts and render the root README with it.

The caller decides the order of children; it is preserved as given.
"""

from __future__ import annotations

import logging
from typing import Iterable

from buildkit.readme import ReadmeContext
from buildkit.renderer import render_fragment

log = logging.getLogger(__name__)

SEPARATOR = "<hr/>"


def module_block(context: ReadmeContext) -> str:
    """
    Summary block of one module: heading link, description, maturity and features.
    """
    path = context.path or context.name
    return render_fragment(
        "module_block.md",
        {
            "name": context.name,
            "path": path,
            "description": context.description or "",
            "maturity": context.maturity.value,
            "features": context.features.serialize(item_prefix="> - ", path_prefix=f"{path}/"),
        },
    )


def modules_string(children: Iterable[ReadmeContext]) -> str:
    blocks = [module_block(child) for child in children]
    if not blocks:
        return ""
    return "\n".join(blocks) + "\n" + SEPARATOR + "\n"


def render_root(root: ReadmeContext, children: Iterable[ReadmeContext]) -> str | None:
    """
    Render the root README with the `modules` property filled from `children`.

    Returns None, without looking at the children, when the root has no template.
    """
    if root.template_path() is None:
        log.debug("Root README template missing (%s); skipping aggregation", root.template)
        return None
    children = list(children)
    root.property("modules", modules_string(children))
    log.info("Aggregated %d module(s) into %s", len(children), root.readme_file)
    return root.render()
