"""Pytest configuration and fixtures."""

import json
from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from helmscan.errors import ContainerRuntimeError
from helmscan.models.model_scanner import CommandResult

RENDERED_TWO_CONTAINERS = """\
---
# Source: foo/templates/deployment.yaml
apiVersion: apps/v1
kind: Deployment
metadata:
  name: foo
spec:
  template:
    spec:
      containers:
        - name: a
          image: a:1
        - name: b
          image: "b:2"
"""


class FakeRenderer:
    """Renderer returning canned output and recording calls."""

    def __init__(
        self,
        stdout: str = "",
        returncode: int = 0,
        stderr: str = "",
        timed_out: bool = False,
    ):
        self.result = CommandResult(
            returncode=returncode, stdout=stdout, stderr=stderr, timed_out=timed_out
        )
        self.calls: list[Path] = []

    async def render(self, directory: Path) -> CommandResult:
        self.calls.append(directory)
        return self.result


class FakeRuntime:
    """Container runtime with scripted pull/run behavior.

    Scan output is looked up by the image being scanned (the `--docker`
    argument of the scanner command).
    """

    def __init__(
        self,
        outputs: Mapping[str, str] | None = None,
        pull_failures: Sequence[str] = (),
        run_failures: Sequence[str] = (),
        exit_codes: Mapping[str, int] | None = None,
    ):
        self.outputs = dict(outputs or {})
        self.pull_failures = set(pull_failures)
        self.run_failures = set(run_failures)
        self.exit_codes = dict(exit_codes or {})
        self.pulls: list[str] = []
        self.runs: list[dict] = []

    async def pull(self, image_ref: str) -> str:
        self.pulls.append(image_ref)
        if image_ref in self.pull_failures:
            raise ContainerRuntimeError(f"docker pull {image_ref} failed", returncode=1)
        return f"Status: Downloaded newer image for {image_ref}"

    async def run(
        self,
        image_ref: str,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
        binds: Sequence[str] = (),
        tty: bool = False,
    ) -> CommandResult:
        target = command[command.index("--docker") + 1]
        self.runs.append(
            {
                "image": image_ref,
                "command": list(command),
                "env": dict(env or {}),
                "binds": list(binds),
                "tty": tty,
            }
        )
        if target in self.run_failures:
            raise ContainerRuntimeError(f"docker run {image_ref} failed", returncode=125)
        return CommandResult(
            returncode=self.exit_codes.get(target, 0),
            stdout=self.outputs.get(target, json.dumps({"ok": True})),
            stderr="",
        )


@pytest.fixture
def chart_dir(tmp_path: Path) -> Path:
    """Chart directory with a valid Chart.yaml (foo@1.2.3)."""
    directory = tmp_path / "foo"
    directory.mkdir()
    (directory / "Chart.yaml").write_text(
        "apiVersion: v2\nname: foo\nversion: 1.2.3\ndescription: Test chart\n",
        encoding="utf-8",
    )
    return directory


@pytest.fixture
def rendered_two_containers() -> str:
    """One rendered Deployment with images a:1 and b:2."""
    return RENDERED_TWO_CONTAINERS


@pytest.fixture
def fake_renderer_factory():
    """Build FakeRenderer instances."""
    return FakeRenderer


@pytest.fixture
def fake_runtime_factory():
    """Build FakeRuntime instances."""
    return FakeRuntime
