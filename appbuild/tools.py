"""
tools.py

Responsibility: Helper tools that are used from the host when installed and
otherwise from a docker image built on demand.

Rules:
- A tool is "installed" when `<name> <probe_arg>` exits 0 on the host.
- Dockerfiles are Jinja2 templates rendered with the config's image versions.
- The working directory is mounted at the Go import path inside the container.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from jinja2 import Environment, StrictUndefined, TemplateError

from appbuild.config import BuildConfig
from appbuild.runner import Runner

log = logging.getLogger(__name__)


class ToolError(RuntimeError):
    pass


@dataclass(frozen=True)
class HelperTool:
    name: str
    probe_arg: str
    url: str
    dockerfile: str

    @property
    def image(self) -> str:
        return f"appbuild-{self.name}"


ESC = HelperTool(
    name="esc",
    probe_arg="--help",
    url="https://github.com/mjibson/esc",
    dockerfile="""\
FROM golang:{{ go_version }}-alpine{{ alpine_version }}
RUN apk add --no-cache git && \\
	go get gopkg.in/mjibson/esc.v0 && \\
	mv /go/bin/esc.v0 /go/bin/esc
""",
)


def render_dockerfile(tool: HelperTool, cfg: BuildConfig) -> str:
    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    try:
        return env.from_string(tool.dockerfile).render(
            go_version=cfg.go_version,
            alpine_version=cfg.alpine_version,
            pkg_name=cfg.pkg_name,
        )
    except TemplateError as e:
        raise ToolError(f"Failed rendering Dockerfile for tool: {tool.name}") from e


def with_tool(tool: HelperTool, cfg: BuildConfig, runner: Runner, cmd: Sequence[str]) -> list[str]:
    """
    Return `cmd` rewritten so that `tool` is available to it.

    If the tool is installed on the host the command is returned unchanged.
    Otherwise the tool image is built and the command is wrapped in a
    `docker run` against it.
    """
    if runner.probe([tool.name, tool.probe_arg]):
        log.debug("using host %s", tool.name)
        return list(cmd)

    log.info("%s not found on host (see %s), building %s", tool.name, tool.url, tool.image)
    runner.run(["docker", "build", "-t", tool.image, "-"], input=render_dockerfile(tool, cfg))
    workdir = f"/go/src/{cfg.pkg_name}"
    return [
        "docker",
        "run",
        "--rm",
        "-v",
        f"{runner.cwd.resolve()}:{workdir}",
        "-w",
        workdir,
        tool.image,
        *cmd,
    ]
