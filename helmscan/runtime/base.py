"""Capability interfaces for the external collaborators."""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from helmscan.models.model_scanner import CommandResult


class Renderer(Protocol):
    """Renders a chart directory into manifest text."""

    async def render(self, directory: Path) -> CommandResult:
        """Render templates.

        The caller decides what a non-zero returncode means; stdout is
        returned either way.
        """
        ...


class ContainerRuntime(Protocol):
    """The two container operations the scan pipeline needs."""

    async def pull(self, image_ref: str) -> str:
        """Pull an image, returning the runtime's status messages.

        Raises:
            ContainerRuntimeError: If the pull fails or times out
        """
        ...

    async def run(
        self,
        image_ref: str,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
        binds: Sequence[str] = (),
        tty: bool = False,
    ) -> CommandResult:
        """Run an image to completion, capturing stdout and stderr.

        `env` values must not appear in the process command line.

        Raises:
            ContainerRuntimeError: If the container could not be started or
                the call timed out. A non-zero exit of the containerized
                command itself is returned, not raised.
        """
        ...
