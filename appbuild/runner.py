"""
runner.py

Responsibility: Isolate all process execution and filesystem removal.

This module must be the only place that:
- Spawns subprocesses (toolchain, docker, tar, git, linters)
- Wires stdin/stdout between processes
- Deletes build artifacts from disk

Targets receive a `Runner` and never touch `subprocess` directly, so tests can
substitute a recording fake.
"""

from __future__ import annotations

import glob
import logging
import os
import shlex
import shutil
import subprocess
import threading
from pathlib import Path
from typing import IO, Mapping, Sequence

log = logging.getLogger(__name__)


class RunError(RuntimeError):
    """A command exited non-zero or could not be started."""

    def __init__(self, message: str, *, cmd: Sequence[str], returncode: int) -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = returncode


class Runner:
    def __init__(self, *, cwd: str | Path | None = None, base_env: Mapping[str, str] | None = None) -> None:
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self._base_env = dict(os.environ if base_env is None else base_env)

    def _env(self, env: Mapping[str, str] | None) -> dict[str, str]:
        merged = dict(self._base_env)
        if env:
            log.debug("env overlay: %s", " ".join(f"{k}={v}" for k, v in env.items()))
            merged.update(env)
        return merged

    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        stdin: IO[bytes] | None = None,
        stdout: IO[bytes] | None = None,
        input: str | None = None,
    ) -> None:
        """
        Run a command to completion, raising a RunError on failure.

        stdout/stderr are inherited unless `stdout` is given. `input` is fed to
        stdin as UTF-8 and cannot be combined with `stdin`.
        """
        argv = [str(c) for c in cmd]
        log.info("$ %s", shlex.join(argv))
        try:
            subprocess.run(
                argv,
                cwd=str(self.cwd),
                env=self._env(env),
                stdin=stdin,
                stdout=stdout,
                input=input.encode("utf-8") if input is not None else None,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise RunError(
                f"Command failed with exit status {e.returncode}: {shlex.join(argv)}",
                cmd=argv,
                returncode=e.returncode,
            ) from e
        except OSError as e:
            raise RunError(f"Command could not be started: {shlex.join(argv)}: {e}", cmd=argv, returncode=127) from e

    def output(self, cmd: Sequence[str], *, env: Mapping[str, str] | None = None) -> str:
        """
        Run a command and return its captured stdout. stderr is inherited.
        """
        argv = [str(c) for c in cmd]
        log.info("$ %s", shlex.join(argv))
        try:
            proc = subprocess.run(
                argv,
                cwd=str(self.cwd),
                env=self._env(env),
                check=True,
                stdout=subprocess.PIPE,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            raise RunError(
                f"Command failed with exit status {e.returncode}: {shlex.join(argv)}",
                cmd=argv,
                returncode=e.returncode,
            ) from e
        except OSError as e:
            raise RunError(f"Command could not be started: {shlex.join(argv)}: {e}", cmd=argv, returncode=127) from e
        return proc.stdout

    def pipe(
        self,
        producer: Sequence[str],
        consumer: Sequence[str],
        *,
        producer_env: Mapping[str, str] | None = None,
        consumer_env: Mapping[str, str] | None = None,
    ) -> None:
        """
        Stream the stdout of `producer` into the stdin of `consumer`.

        The producer runs in a background thread and owns the write end of an
        OS pipe; it closes it when the producer process exits, which is what
        the consumer observes as end-of-stream. The consumer runs in the
        calling thread. A consumer failure is raised first; otherwise a
        producer failure is raised once the consumer is done.
        """
        read_fd, write_fd = os.pipe()
        errors: list[BaseException] = []

        def produce() -> None:
            try:
                with os.fdopen(write_fd, "wb") as w:
                    self.run(producer, env=producer_env, stdout=w)
            except BaseException as e:  # noqa: BLE001 - re-raised in the calling thread
                errors.append(e)

        thread = threading.Thread(target=produce, name="appbuild-pipe-producer", daemon=True)
        thread.start()
        try:
            with os.fdopen(read_fd, "rb") as r:
                self.run(consumer, env=consumer_env, stdin=r)
        finally:
            thread.join()
        if errors:
            raise errors[0]

    def probe(self, cmd: Sequence[str]) -> bool:
        """
        Return True if the command can be started and exits 0. Output is discarded.
        """
        argv = [str(c) for c in cmd]
        log.debug("probe: %s", shlex.join(argv))
        try:
            proc = subprocess.run(
                argv,
                cwd=str(self.cwd),
                env=self._env(None),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            return False
        return proc.returncode == 0

    def remove(self, *patterns: str) -> None:
        """
        Remove files and directories matching glob patterns relative to cwd.
        Missing paths are ignored.
        """
        for pattern in patterns:
            for match in sorted(glob.glob(pattern, root_dir=self.cwd)):
                path = self.cwd / match
                log.info("rm -rf %s", match)
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink()

    def git_short_commit(self) -> str:
        return self.output(["git", "rev-parse", "--short", "HEAD"]).strip()

    def git_tag(self) -> str:
        return self.output(["git", "describe", "--tags", "--always"]).strip()
