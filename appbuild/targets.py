"""
targets.py

Responsibility: The named build targets.

Every target has the signature `(cfg: BuildConfig, runner: Runner) -> None`
and is registered under its display name (e.g. `GradleTest`). Composite
targets call their parts in a fixed order; a `RunError` from any step
propagates and stops the rest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from appbuild import flags, tools
from appbuild.config import BuildConfig
from appbuild.runner import Runner

log = logging.getLogger(__name__)

TargetFunc = Callable[[BuildConfig, Runner], None]


@dataclass(frozen=True)
class Target:
    name: str
    func: TargetFunc

    @property
    def description(self) -> str:
        doc = (self.func.__doc__ or "").strip()
        return doc.splitlines()[0] if doc else ""

    def __call__(self, cfg: BuildConfig, runner: Runner) -> None:
        log.info("==> %s", self.name)
        self.func(cfg, runner)


TARGETS: dict[str, Target] = {}


def normalize(name: str) -> str:
    return name.replace("-", "").replace("_", "").lower()


def target(name: str) -> Callable[[TargetFunc], Target]:
    def register(func: TargetFunc) -> Target:
        t = Target(name=name, func=func)
        TARGETS[normalize(name)] = t
        return t

    return register


def lookup(name: str) -> Target | None:
    return TARGETS.get(normalize(name))


def _go_env(goos: str | None = None) -> dict[str, str]:
    env = {"CGO_ENABLED": "0"}
    if goos is not None:
        env = {"GOOS": goos, **env}
    return env


@target("All")
def all_(cfg: BuildConfig, runner: Runner) -> None:
    """Builds and tests everything"""
    bin_(cfg, runner)
    test(cfg, runner)


@target("Test")
def test(cfg: BuildConfig, runner: Runner) -> None:
    """Runs all tests"""
    test_unit(cfg, runner)
    test_e2e(cfg, runner)


@target("Check")
def check(cfg: BuildConfig, runner: Runner) -> None:
    """Runs linters and all tests"""
    lint(cfg, runner)
    test(cfg, runner)


@target("Clean")
def clean(cfg: BuildConfig, runner: Runner) -> None:
    """Cleans build artifacts"""
    runner.remove("bin", "_build", f"{cfg.bin_name}-*.tar.gz")


@target("Lint")
def lint(cfg: BuildConfig, runner: Runner) -> None:
    """Runs linters"""
    runner.run(["gometalinter", "--config=gometalinter.json", "./..."])


@target("Vendor")
def vendor(cfg: BuildConfig, runner: Runner) -> None:
    """Updates vendoring"""
    runner.remove("vendor")
    runner.run(["dep", "ensure", "-v"])


@target("Bin")
def bin_(cfg: BuildConfig, runner: Runner) -> None:
    """Builds application binaries"""
    for goos in cfg.os_list:
        runner.run(
            [
                "go",
                "build",
                flags.tags(cfg.experimental),
                flags.ldflags(cfg),
                "-o",
                f"bin/{flags.bin_name(cfg, goos)}",
                f"./cmd/{cfg.bin_name}",
            ],
            env=_go_env(goos),
        )


@target("E2e")
def e2e(cfg: BuildConfig, runner: Runner) -> None:
    """Builds end to end test binaries"""
    for goos in cfg.os_list:
        runner.run(
            [
                "go",
                "test",
                flags.tags(cfg.experimental),
                flags.ldflags(cfg),
                "-c",
                "-o",
                f"bin/{flags.e2e_bin_name(cfg, goos)}",
                "./e2e",
            ],
            env=_go_env(goos),
        )


@target("Tars")
def tars(cfg: BuildConfig, runner: Runner) -> None:
    """Creates tar archives with application and end to end test binaries"""
    for goos in cfg.os_list:
        runner.run(["tar", "-czf", flags.tar_name(cfg, goos), "-C", "bin", flags.bin_name(cfg, goos)])
        runner.run(["tar", "-czf", flags.e2e_tar_name(cfg, goos), "-C", "bin", flags.e2e_bin_name(cfg, goos)])


@target("TestUnit")
def test_unit(cfg: BuildConfig, runner: Runner) -> None:
    """Runs unit tests"""
    listing = runner.output(["go", "list", "./..."])
    unit, skipped = flags.partition_packages(listing)
    if skipped:
        log.debug("skipping e2e packages: %s", " ".join(skipped))
    if not unit:
        log.info("no unit test packages found, skipping")
        return
    runner.run(["go", "test", *unit])


@target("TestE2e")
def test_e2e(cfg: BuildConfig, runner: Runner) -> None:
    """Runs end to end tests"""
    runner.run(
        ["go", "test", flags.tags(cfg.experimental), flags.ldflags(cfg), "-v", "./e2e"],
        env=_go_env(),
    )


@target("GradleTest")
def gradle_test(cfg: BuildConfig, runner: Runner) -> None:
    """Runs end to end tests for the gradle plugin"""
    image = flags.gradle_image(cfg)
    runner.pipe(
        ["tar", "-czf", "-", "Dockerfile.gradle", f"bin/{flags.bin_name(cfg, 'linux')}", "integrations/gradle"],
        ["docker", "build", "-t", image, "-f", "Dockerfile.gradle", "-"],
    )
    runner.run(
        [
            "docker",
            "run",
            "--rm",
            image,
            "bash",
            "-c",
            "ls -la && ./gradlew --stacktrace build && cd example && gradle renderIt",
        ]
    )


@target("Schemas")
def schemas(cfg: BuildConfig, runner: Runner) -> None:
    """Generates specification/bindata.go from json schemas"""
    cmd = tools.with_tool(tools.ESC, cfg, runner, ["go", "generate", f"{cfg.pkg_name}/specification"])
    runner.run(cmd)
