"""
cli.py

Responsibility: CLI entrypoint for appbuild.

High-level flow:
1) Parse arguments and resolve target names
2) Load `build.yaml` (or `--config`) -> `FileSettings`
3) Query git once and build the immutable `BuildConfig`
4) Run the requested targets in order; the first failure stops the run

This module orchestrates only:
- Configuration: `config.py`
- Process execution: `runner.py`
- Target definitions: `targets.py`
"""

from __future__ import annotations

import argparse
import logging
import sys

from appbuild import __version__
from appbuild.config import ConfigError, build_config, load_settings
from appbuild.runner import RunError, Runner
from appbuild.targets import TARGETS, Target, lookup
from appbuild.tools import ToolError

log = logging.getLogger("appbuild")


def _list_targets() -> str:
    width = max(len(t.name) for t in TARGETS.values())
    return "\n".join(f"  {t.name.ljust(width)}  {t.description}" for t in TARGETS.values())


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="appbuild",
        description="Build, test and package docker-app",
        epilog="targets:\n" + _list_targets(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("targets", nargs="*", metavar="TARGET", help="Targets to run, in order")
    p.add_argument(
        "--experimental",
        default=None,
        help="enable experimental features, on or off (default: off, or the config file value)",
    )
    p.add_argument("--config", default=None, help="Path to a YAML config file (default: ./build.yaml if present)")
    p.add_argument("--os", dest="os_list", default=None, help="Comma separated GOOS list for per-OS targets")
    p.add_argument("-l", "--list", action="store_true", help="List targets and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _resolve(parser: argparse.ArgumentParser, names: list[str]) -> list[Target]:
    resolved: list[Target] = []
    for name in names:
        t = lookup(name)
        if t is None:
            parser.error(f"unknown target: {name} (use --list)")
        resolved.append(t)
    return resolved


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list or not args.targets:
        print(_list_targets())
        return 0

    selected = _resolve(parser, args.targets)
    runner = Runner()
    try:
        cfg = build_config(
            runner,
            load_settings(args.config),
            experimental=args.experimental,
            os_list=args.os_list,
        )
        for t in selected:
            t(cfg, runner)
    except RunError as e:
        log.error("%s", e)
        # killed by a signal: report it the way a shell does
        if e.returncode < 0:
            return 128 - e.returncode
        return e.returncode or 1
    except (ConfigError, ToolError) as e:
        log.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
