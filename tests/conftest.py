from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Sequence

import pytest

from appbuild.config import BuildConfig
from appbuild.runner import RunError, Runner


class FakeRunner(Runner):
    """
    Records every call instead of spawning processes.

    `outputs` maps a command prefix (tuple) to captured stdout; `fail_on`
    lists command prefixes that raise RunError.
    """

    def __init__(self, *, outputs: Mapping[tuple[str, ...], str] | None = None, fail_on: Sequence[tuple[str, ...]] = (), installed: Sequence[str] = ()) -> None:
        super().__init__(cwd=Path("/work"), base_env={})
        self.calls: list[tuple[str, list[str], dict[str, Any]]] = []
        self.outputs = dict(outputs or {})
        self.fail_on = list(fail_on)
        self.installed = set(installed)

    def _record(self, kind: str, cmd: Sequence[str], **kwargs: Any) -> list[str]:
        argv = [str(c) for c in cmd]
        self.calls.append((kind, argv, kwargs))
        for prefix in self.fail_on:
            if tuple(argv[: len(prefix)]) == prefix:
                raise RunError(f"fake failure: {' '.join(argv)}", cmd=argv, returncode=3)
        return argv

    def run(self, cmd, *, env=None, stdin=None, stdout=None, input=None) -> None:  # type: ignore[override]
        self._record("run", cmd, env=dict(env or {}), input=input)

    def output(self, cmd, *, env=None) -> str:  # type: ignore[override]
        argv = self._record("output", cmd, env=dict(env or {}))
        for prefix, out in self.outputs.items():
            if tuple(argv[: len(prefix)]) == prefix:
                return out
        return ""

    def pipe(self, producer, consumer, *, producer_env=None, consumer_env=None) -> None:  # type: ignore[override]
        self._record("pipe-producer", producer)
        self._record("pipe-consumer", consumer)

    def probe(self, cmd) -> bool:  # type: ignore[override]
        argv = [str(c) for c in cmd]
        self.calls.append(("probe", argv, {}))
        return argv[0] in self.installed

    def remove(self, *patterns: str) -> None:
        self.calls.append(("remove", list(patterns), {}))

    def commands(self, kind: str | None = None) -> list[list[str]]:
        return [argv for k, argv, _ in self.calls if kind is None or k == kind]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def cfg() -> BuildConfig:
    return BuildConfig(
        bin_name="docker-app",
        pkg_name="github.com/docker/app",
        experimental="off",
        now="2018-06-01T12:00:00+02:00",
        commit="abc1234",
        tag="v0.2.0",
        os_list=("linux", "darwin", "windows"),
    )


@pytest.fixture
def make_runner() -> type[FakeRunner]:
    return FakeRunner
