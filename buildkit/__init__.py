"""
buildkit package

README and feature-matrix generation for multi-module projects, as a CLI-first utility.

Key responsibilities are split across modules:
- `features.py`: ordered per-module feature registry and its markdown serialization
- `readme.py`: per-module README context and `$placeholder` substitution
- `aggregate.py`: root README module list built from child modules
- `renderer.py`: Jinja2 rendering of generated fragments
- `project.py`: parse the YAML project description into typed settings
- `publishing.py`: VCS / package repository configuration and its preconditions
- `cli.py`: CLI entrypoint and orchestration (parse -> render children -> aggregate)
"""

from __future__ import annotations

from buildkit.features import Feature, FeatureRegistry
from buildkit.readme import Maturity, ReadmeContext

__all__ = ["Feature", "FeatureRegistry", "Maturity", "ReadmeContext", "__version__"]

__version__ = "0.1.0"
