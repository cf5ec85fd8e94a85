from __future__ import annotations

import os
import sys

import pytest

from appbuild.runner import RunError, Runner

PY = sys.executable


def test_output_captures_stdout(tmp_path) -> None:
    runner = Runner(cwd=tmp_path)
    assert runner.output([PY, "-c", "print('a'); print('b/e2e')"]) == "a\nb/e2e\n"


def test_env_overlay(tmp_path) -> None:
    runner = Runner(cwd=tmp_path, base_env={**os.environ, "BASE": "1"})
    out = runner.output(
        [PY, "-c", "import os; print(os.environ['BASE'], os.environ['GOOS'])"],
        env={"GOOS": "windows"},
    )
    assert out.split() == ["1", "windows"]


def test_run_failure_raises_with_returncode(tmp_path) -> None:
    runner = Runner(cwd=tmp_path)
    with pytest.raises(RunError) as exc:
        runner.run([PY, "-c", "raise SystemExit(4)"])
    assert exc.value.returncode == 4
    assert exc.value.cmd[0] == PY


def test_missing_executable_raises(tmp_path) -> None:
    runner = Runner(cwd=tmp_path)
    with pytest.raises(RunError) as exc:
        runner.run(["appbuild-no-such-tool-xyz"])
    assert exc.value.returncode == 127


def test_run_with_input(tmp_path) -> None:
    runner = Runner(cwd=tmp_path)
    runner.run([PY, "-c", "import sys; open('out.txt', 'w').write(sys.stdin.read())"], input="FROM scratch\n")
    assert (tmp_path / "out.txt").read_text() == "FROM scratch\n"


def test_pipe_delivers_all_bytes_before_eof(tmp_path) -> None:
    runner = Runner(cwd=tmp_path)
    size = 1 << 20
    producer = [PY, "-c", f"import sys; sys.stdout.buffer.write(b'x' * {size})"]
    consumer = [PY, "-c", "import sys; data = sys.stdin.buffer.read(); open('n.txt', 'w').write(str(len(data)))"]
    runner.pipe(producer, consumer)
    assert (tmp_path / "n.txt").read_text() == str(size)


def test_pipe_producer_failure_is_raised(tmp_path) -> None:
    runner = Runner(cwd=tmp_path)
    producer = [PY, "-c", "import sys; sys.stdout.write('partial'); sys.exit(2)"]
    consumer = [PY, "-c", "import sys; sys.stdin.read()"]
    with pytest.raises(RunError) as exc:
        runner.pipe(producer, consumer)
    assert exc.value.returncode == 2


def test_pipe_consumer_failure_is_raised(tmp_path) -> None:
    runner = Runner(cwd=tmp_path)
    producer = [PY, "-c", "print('hello')"]
    consumer = [PY, "-c", "import sys; sys.stdin.read(); sys.exit(5)"]
    with pytest.raises(RunError) as exc:
        runner.pipe(producer, consumer)
    assert exc.value.returncode == 5


def test_probe(tmp_path) -> None:
    runner = Runner(cwd=tmp_path)
    assert runner.probe([PY, "--version"]) is True
    assert runner.probe([PY, "-c", "raise SystemExit(1)"]) is False
    assert runner.probe(["appbuild-no-such-tool-xyz", "--help"]) is False


def test_remove_globs_files_and_dirs(tmp_path) -> None:
    (tmp_path / "bin").mkdir()
    (tmp_path / "bin" / "docker-app-linux").write_text("x")
    (tmp_path / "docker-app-linux.tar.gz").write_text("x")
    (tmp_path / "docker-app-e2e-linux.tar.gz").write_text("x")
    (tmp_path / "keep.txt").write_text("x")
    Runner(cwd=tmp_path).remove("bin", "_build", "docker-app-*.tar.gz")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["keep.txt"]


def test_git_helpers_strip_output(make_runner) -> None:
    runner = make_runner(outputs={("git", "rev-parse"): "abc1234\n", ("git", "describe"): "v1.0.0\n"})
    assert runner.git_short_commit() == "abc1234"
    assert runner.git_tag() == "v1.0.0"


def test_remove_with_glob_characters_in_cwd(tmp_path) -> None:
    root = tmp_path / "proj[1]"
    (root / "bin").mkdir(parents=True)
    (root / "bin" / "docker-app-linux").write_text("x")
    (root / "docker-app-linux.tar.gz").write_text("x")
    (root / "main.go").write_text("x")
    Runner(cwd=root).remove("bin", "docker-app-*.tar.gz")
    assert sorted(p.name for p in root.iterdir()) == ["main.go"]
