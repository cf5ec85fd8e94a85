"""
config.py

Responsibility: Build the immutable `BuildConfig` that every target receives.

Sources, lowest to highest precedence:
- built-in defaults (the docker-app binary and import path)
- an optional YAML file (`build.yaml` by default)
- CLI overrides

Git metadata and the build timestamp are computed exactly once, here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from appbuild.runner import Runner

DEFAULT_CONFIG_FILE = "build.yaml"
DEFAULT_OS_LIST = ("linux", "darwin", "windows")

_KNOWN_KEYS = {"bin_name", "pkg_name", "experimental", "os", "go_version", "alpine_version"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class FileSettings:
    """Settings that may come from the YAML file or the CLI."""

    bin_name: str = "docker-app"
    pkg_name: str = "github.com/docker/app"
    experimental: str = "off"
    os_list: tuple[str, ...] = DEFAULT_OS_LIST
    go_version: str = "1.10.3"
    alpine_version: str = "3.7"


@dataclass(frozen=True)
class BuildConfig:
    """Read-only values shared by all targets for one invocation."""

    bin_name: str
    pkg_name: str
    experimental: str
    now: str
    commit: str
    tag: str
    os_list: tuple[str, ...] = DEFAULT_OS_LIST
    go_version: str = "1.10.3"
    alpine_version: str = "3.7"


def _experimental_str(value: Any) -> str:
    # YAML 1.1 reads bare on/off as booleans; an empty value is null.
    if value is None:
        return FileSettings().experimental
    if value is True:
        return "on"
    if value is False:
        return "off"
    return str(value).strip()


def _os_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items = [v.strip() for v in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value]
    else:
        raise ConfigError("`os` must be a list or a comma separated string.")
    items = [v for v in items if v]
    if not items:
        raise ConfigError("`os` must name at least one operating system.")
    return tuple(items)


def load_settings(path: str | Path | None = None) -> FileSettings:
    """
    Load `FileSettings` from a YAML file.

    With `path=None` the default file is used if present; an explicit path
    that does not exist is an error.
    """
    if path is None:
        candidate = Path(DEFAULT_CONFIG_FILE)
        if not candidate.exists():
            return FileSettings()
    else:
        candidate = Path(path)
        if not candidate.exists():
            raise ConfigError(f"Config file does not exist: {candidate}")

    try:
        data = yaml.safe_load(candidate.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {candidate}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping/object at the top level.")

    unknown = sorted(str(k) for k in data if k not in _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys in {candidate}: {', '.join(unknown)}")

    defaults = FileSettings()
    return FileSettings(
        bin_name=str(data.get("bin_name") or defaults.bin_name).strip(),
        pkg_name=str(data.get("pkg_name") or defaults.pkg_name).strip(),
        experimental=_experimental_str(data["experimental"]) if "experimental" in data else defaults.experimental,
        os_list=_os_tuple(data["os"]) if "os" in data else defaults.os_list,
        go_version=str(data.get("go_version") or defaults.go_version).strip(),
        alpine_version=str(data.get("alpine_version") or defaults.alpine_version).strip(),
    )


def rfc3339_now() -> str:
    return datetime.now().astimezone().replace(microsecond=0).isoformat()


def build_config(
    runner: Runner,
    settings: FileSettings,
    *,
    experimental: str | None = None,
    os_list: str | None = None,
    now: str | None = None,
) -> BuildConfig:
    """
    Combine settings with CLI overrides and query git once via `runner`.
    """
    return BuildConfig(
        bin_name=settings.bin_name,
        pkg_name=settings.pkg_name,
        experimental=settings.experimental if experimental is None else _experimental_str(experimental),
        now=now or rfc3339_now(),
        commit=runner.git_short_commit(),
        tag=runner.git_tag(),
        os_list=settings.os_list if os_list is None else _os_tuple(os_list),
        go_version=settings.go_version,
        alpine_version=settings.alpine_version,
    )
