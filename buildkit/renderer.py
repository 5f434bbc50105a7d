"""
renderer.py

Responsibility: Render the markdown fragments buildkit generates itself
(module summary blocks, artifact snippets) from Jinja2 templates.

Rules:
- Fragments are rendered with StrictUndefined: a missing context key is a bug
  in buildkit, surfaced as RenderError.
- Output is deterministic and uses "\n" line endings.

User README templates are NOT rendered here; see `readme.py` for the
`$placeholder` substitution applied to them.
"""

from __future__ import annotations

from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError


class RenderError(RuntimeError):
    pass


MODULE_BLOCK = """\
<hr/>

* ### [{{ name }}]({{ path }})
{% if description %}
> {{ description }}
{% endif %}
>
> **Maturity**: {{ maturity }}
{% if features %}
>
> **Features:**
{{ features }}
{% endif %}
"""

ARTIFACT = """\
{% if published and group %}
## Artifact:

The Maven coordinates of this project are `{{ group }}:{{ name }}:{{ version }}`.

**Gradle Kotlin DSL:**
```kotlin
repositories {
{% for url in repositories %}
    maven("{{ url }}")
{% endfor %}
    mavenCentral()
}

dependencies {
    implementation("{{ group }}:{{ name }}:{{ version }}")
}
```
{% else %}
## Artifact:

The module `{{ name }}` is not published.
{% endif %}
"""

_env = Environment(
    loader=DictLoader({"module_block.md": MODULE_BLOCK, "artifact.md": ARTIFACT}),
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    trim_blocks=True,
)


def render_fragment(name: str, context: dict[str, Any]) -> str:
    """
    Render one of the built-in fragment templates (`module_block.md`, `artifact.md`).
    """
    try:
        return _env.get_template(name).render(**context)
    except TemplateError as e:
        raise RenderError(f"Failed rendering fragment: {name}") from e
