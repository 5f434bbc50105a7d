from pathlib import Path

import pytest

PROJECT_YAML = """\
name: demo
group: space.example
version: 0.3.0
description: Demo project
readme:
  template: docs/README-TEMPLATE.md
  inputs: [docs/intro.md]
properties:
  publishing.space.user: alice
  publishing.space.token: s3cret
publishing:
  vcs: https://github.com/example/demo
  connection: https://github.com/example/demo.git
  repositories:
    space: https://maven.example/space/
modules:
  - path: core
    description: Core structures
    maturity: stable
    published: true
    readme:
      template: README-TEMPLATE.md
      properties:
        badge: "[ci]"
    features:
      - {key: fast, content: O(1) lookup}
      - {key: safe, content: no null derefs, id: safety.md}
  - path: libs/bare
"""


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    (tmp_path / "buildkit.yaml").write_text(PROJECT_YAML, encoding="utf-8")
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "README-TEMPLATE.md").write_text("# $name\n\n$description\n\n## Modules\n$modules", encoding="utf-8")
    (docs / "intro.md").write_text("intro", encoding="utf-8")
    core = tmp_path / "core"
    core.mkdir()
    (core / "README-TEMPLATE.md").write_text("# $name $badge\n\n$features\n\n$artifact", encoding="utf-8")
    return tmp_path
