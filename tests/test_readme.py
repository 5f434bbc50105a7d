from pathlib import Path

import pytest

from buildkit.readme import Maturity, ReadmeContext, substitute
from buildkit.renderer import RenderError


def _context(tmp_path: Path, template_text: str | None, **kwargs) -> ReadmeContext:
    template = None
    if template_text is not None:
        template = tmp_path / "README-TEMPLATE.md"
        template.write_text(template_text, encoding="utf-8")
    return ReadmeContext(name="core", directory=tmp_path, template=template, **kwargs)


def test_render_features_placeholder(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "# $name\n\n$features\n")
    ctx.feature("fast", "O(1) lookup")
    ctx.feature("safe", "no null derefs", id="safety.md")

    assert ctx.render() == "# core\n\n- fast : O(1) lookup\n- [safe](safety.md) : no null derefs\n"


def test_render_without_template_returns_none(tmp_path: Path) -> None:
    assert _context(tmp_path, None).render() is None


def test_render_with_missing_template_file_returns_none(tmp_path: Path) -> None:
    ctx = ReadmeContext(name="core", directory=tmp_path, template=tmp_path / "nope.md")
    assert ctx.render() is None
    assert ctx.write() is None
    assert not (tmp_path / "README.md").exists()


def test_unknown_placeholder_left_verbatim(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "a $unknown b ${other} c $name")
    assert ctx.render() == "a $unknown b ${other} c core"


def test_braced_placeholder_and_literal_dollars(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "${name}-suffix costs $$5 or $ 4")
    assert ctx.render() == "core-suffix costs $$5 or $ 4"


def test_display_math_kept_verbatim(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "$$E = mc^2$$ by $name", on_unknown="error")
    assert ctx.render() == "$$E = mc^2$$ by core"


def test_key_error_in_lazy_property_is_not_hidden(tmp_path: Path) -> None:
    cfg: dict[str, str] = {}
    ctx = _context(tmp_path, "v=$x")
    ctx.property("x", lambda: cfg["missing"])

    with pytest.raises(RenderError, match="'x'"):
        ctx.render()


def test_explicit_property_overrides_implicit(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "$features|$badge")
    ctx.feature("fast", "O(1) lookup")
    ctx.property("features", "custom")
    ctx.property("badge", "[![ci](ci.svg)]")

    assert ctx.render() == "custom|[![ci](ci.svg)]"


def test_lazy_property_sees_later_mutation(tmp_path: Path) -> None:
    state = {"value": "before"}
    ctx = _context(tmp_path, "$lazy")
    ctx.property("lazy", lambda: state["value"])
    state["value"] = "after"

    assert ctx.render() == "after"


def test_lazy_property_evaluated_once_per_render(tmp_path: Path) -> None:
    calls: list[int] = []

    def compute() -> str:
        calls.append(1)
        return "x"

    ctx = _context(tmp_path, "$v $v ${v}")
    ctx.property("v", compute)

    assert ctx.render() == "x x x"
    assert len(calls) == 1


def test_substituted_values_are_not_rescanned(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "$a")
    ctx.property("a", "$name")
    assert ctx.render() == "$name"


def test_implicit_properties(tmp_path: Path) -> None:
    ctx = _context(
        tmp_path,
        "$name|$group|$version|$description|$maturity|$published|[$modules]",
        group="space.example",
        version="1.0",
        maturity=Maturity.STABLE,
    )
    assert ctx.render() == "core|space.example|1.0||STABLE|false|[]"


def test_render_is_idempotent(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "$name\n$features\n$artifact\n", group="g", version="1", published=True)
    ctx.feature("fast", "O(1) lookup")
    assert ctx.render() == ctx.render()


def test_artifact_for_published_module(tmp_path: Path) -> None:
    ctx = _context(
        tmp_path,
        "$artifact",
        group="space.example",
        version="1.2.0",
        published=True,
        repositories=["https://maven.example/space/"],
    )
    out = ctx.render()
    assert out is not None
    assert "`space.example:core:1.2.0`" in out
    assert '    maven("https://maven.example/space/")\n' in out
    assert 'implementation("space.example:core:1.2.0")' in out


def test_artifact_for_unpublished_module(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "$artifact", group="space.example")
    out = ctx.render()
    assert out is not None
    assert "not published" in out
    assert "implementation(" not in out


def test_write_overwrites_readme(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "hello $name\n")
    (tmp_path / "README.md").write_text("stale content that is longer\n", encoding="utf-8")

    out = ctx.write()

    assert out == tmp_path / "README.md"
    assert out.read_text(encoding="utf-8") == "hello core\n"


def test_declared_inputs_only_existing_files(tmp_path: Path) -> None:
    extra = tmp_path / "intro.md"
    extra.write_text("intro", encoding="utf-8")
    ctx = _context(tmp_path, "x", inputs=[extra, tmp_path / "missing.md"])

    assert ctx.declared_inputs() == [tmp_path / "README-TEMPLATE.md", extra]


def test_warn_policy_logs_unknown(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    ctx = _context(tmp_path, "$nope $nope", on_unknown="warn")
    with caplog.at_level("WARNING"):
        assert ctx.render() == "$nope $nope"
    assert "$nope" in caplog.text


def test_error_policy_raises(tmp_path: Path) -> None:
    ctx = _context(tmp_path, "$nope", on_unknown="error")
    with pytest.raises(RenderError, match=r"\$nope"):
        ctx.render()


def test_substitute_rejects_bad_policy() -> None:
    with pytest.raises(ValueError):
        substitute("x", {}, on_unknown="explode")


def test_maturity_parse() -> None:
    assert Maturity.parse(None) is Maturity.EXPERIMENTAL
    assert Maturity.parse("stable") is Maturity.STABLE
    assert str(Maturity.DEPRECATED) == "DEPRECATED"
    with pytest.raises(ValueError, match="Unknown maturity"):
        Maturity.parse("golden")
