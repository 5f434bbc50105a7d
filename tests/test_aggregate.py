from pathlib import Path

from buildkit.aggregate import module_block, modules_string, render_root
from buildkit.readme import Maturity, ReadmeContext


def _children(tmp_path: Path) -> list[ReadmeContext]:
    core = ReadmeContext(
        name="core",
        directory=tmp_path / "core",
        path="core",
        description="Core structures",
        maturity=Maturity.STABLE,
    )
    core.feature("fast", "O(1) lookup", id="docs/fast.md")
    bare = ReadmeContext(name="bare", directory=tmp_path / "libs/bare", path="libs/bare")
    return [core, bare]


def test_module_block_with_features() -> None:
    ctx = ReadmeContext(name="core", path="core", description="Core structures", maturity=Maturity.STABLE)
    ctx.feature("fast", "O(1) lookup")
    ctx.feature("safe", "no null derefs", id="safety.md")

    assert module_block(ctx) == (
        "<hr/>\n"
        "\n"
        "* ### [core](core)\n"
        "> Core structures\n"
        ">\n"
        "> **Maturity**: STABLE\n"
        ">\n"
        "> **Features:**\n"
        "> - fast : O(1) lookup\n"
        "> - [safe](core/safety.md) : no null derefs\n"
    )


def test_module_block_heading_only_module() -> None:
    ctx = ReadmeContext(name="bare", path="libs/bare")

    assert module_block(ctx) == (
        "<hr/>\n"
        "\n"
        "* ### [bare](libs/bare)\n"
        ">\n"
        "> **Maturity**: EXPERIMENTAL\n"
    )


def test_modules_string_keeps_order_and_omits_empty_features(tmp_path: Path) -> None:
    out = modules_string(_children(tmp_path))

    core_at = out.index("[core](core)")
    bare_at = out.index("[bare](libs/bare)")
    assert core_at < bare_at
    assert out.count("**Features:**") == 1
    assert "**Features:**" not in out[bare_at:]
    assert out.count("<hr/>") == 3
    assert out.endswith("<hr/>\n")


def test_modules_string_empty() -> None:
    assert modules_string([]) == ""


def test_render_root_fills_modules(tmp_path: Path) -> None:
    template = tmp_path / "docs" / "README-TEMPLATE.md"
    template.parent.mkdir()
    template.write_text("# $name\n\n## Modules\n$modules", encoding="utf-8")
    root = ReadmeContext(name="demo", directory=tmp_path, template=template)

    out = render_root(root, _children(tmp_path))

    assert out is not None
    assert out.startswith("# demo\n\n## Modules\n<hr/>\n")
    assert "> - [fast](core/docs/fast.md) : O(1) lookup" in out
    assert "* ### [bare](libs/bare)" in out


def test_render_root_without_template_skips(tmp_path: Path) -> None:
    root = ReadmeContext(name="demo", directory=tmp_path, template=tmp_path / "missing.md")

    assert render_root(root, _children(tmp_path)) is None
    assert "modules" not in root.properties
