"""
flags.py

Responsibility: Pure string construction for toolchain invocations.

Nothing here spawns processes or reads the environment; every function is a
deterministic function of its arguments (usually a `BuildConfig`).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from appbuild.config import BuildConfig

E2E_SUFFIX = "/e2e"


def tags(experimental: str) -> str:
    """
    Build tag flag. Any value other than "off" enables experimental features.
    """
    flag = "-tags="
    if experimental != "off":
        flag += "experimental"
    return flag


def ldflags(cfg: BuildConfig) -> str:
    """
    Linker flag stripping debug symbols and injecting version metadata into
    `<pkg>/internal`. Returned as a single argv element.
    """
    internal = f"{cfg.pkg_name}/internal"
    return (
        "-ldflags=-s -w"
        f" -X {internal}.GitCommit={cfg.commit}"
        f" -X {internal}.Version={cfg.tag}"
        f" -X {internal}.Experimental={cfg.experimental}"
        f" -X {internal}.BuildTime={cfg.now}"
    )


def partition_packages(listing: str, suffix: str = E2E_SUFFIX) -> tuple[list[str], list[str]]:
    """
    Split newline-separated `go list` output into (unit, e2e) packages.

    Order of the listing is preserved in both lists; blank lines are dropped.
    """
    unit: list[str] = []
    e2e: list[str] = []
    for line in listing.splitlines():
        pkg = line.strip()
        if not pkg:
            continue
        (e2e if pkg.endswith(suffix) else unit).append(pkg)
    return unit, e2e


def exe(goos: str) -> str:
    return ".exe" if goos == "windows" else ""


def bin_name(cfg: BuildConfig, goos: str) -> str:
    return f"{cfg.bin_name}-{goos}{exe(goos)}"


def e2e_bin_name(cfg: BuildConfig, goos: str) -> str:
    return f"{cfg.bin_name}-e2e-{goos}{exe(goos)}"


def tar_name(cfg: BuildConfig, goos: str) -> str:
    return f"{cfg.bin_name}-{goos}.tar.gz"


def e2e_tar_name(cfg: BuildConfig, goos: str) -> str:
    return f"{cfg.bin_name}-e2e-{goos}.tar.gz"


def gradle_image(cfg: BuildConfig) -> str:
    return f"{cfg.bin_name}-gradle:{cfg.tag}"
