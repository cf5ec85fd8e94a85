"""
appbuild package

Build targets for the docker-app application, driven from a small CLI.

Key responsibilities are split across modules:
- `config.py`: immutable build configuration (YAML file + CLI overrides + git metadata)
- `flags.py`: toolchain flag strings, package partitioning and artifact names
- `runner.py`: the only place that spawns processes (run, capture, pipe, remove)
- `tools.py`: helper tools that fall back to a docker image when missing on the host
- `targets.py`: the named targets (Bin, Test, Lint, Tars, ...) and their registry
- `cli.py`: CLI entrypoint and target dispatch
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
