"""Container runtime client backed by the docker CLI."""

import logging
import shutil
from collections.abc import Mapping, Sequence

from helmscan.consts import DOCKER_EXECUTABLE
from helmscan.errors import ContainerRuntimeError, ContainerRuntimeTimeout
from helmscan.models.model_scanner import CommandResult
from helmscan.runtime.process import run_command

logger = logging.getLogger(__name__)

# `docker run` exit codes that mean the container never ran the command
DOCKER_RUN_FAILURE_CODES = (125, 126, 127)


class DockerCliRuntime:
    """Pulls and runs images with `docker pull` and `docker run --rm`.

    Environment values for `run` are handed to the docker CLI through its own
    environment and forwarded by name (`-e NAME`), so secrets never show up
    in the process list.
    """

    def __init__(self, docker_path: str = DOCKER_EXECUTABLE, timeout: float | None = None):
        """Initialize DockerCliRuntime.

        Args:
            docker_path: Path to docker executable (default: "docker")
            timeout: Timeout in seconds for each pull or run (default: None)
        """
        self.docker_path = docker_path
        self.timeout = timeout

    def is_docker_installed(self) -> bool:
        return shutil.which(self.docker_path) is not None

    async def pull(self, image_ref: str) -> str:
        logger.debug(f"Pulling image: {image_ref}")
        result = await run_command([self.docker_path, "pull", image_ref], timeout=self.timeout)

        if result.timed_out:
            raise ContainerRuntimeTimeout(
                f"docker pull {image_ref} timed out after {self.timeout}s", stderr=result.stderr
            )
        if not result.success:
            raise ContainerRuntimeError(
                f"docker pull {image_ref} failed (code {result.returncode}): "
                f"{result.stderr.strip()[:1000]}",
                returncode=result.returncode,
                stderr=result.stderr,
            )

        logger.debug(f"Pulled {image_ref}: {result.stdout.strip()}")
        return result.stdout

    def build_run_command(
        self,
        image_ref: str,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
        binds: Sequence[str] = (),
        tty: bool = False,
    ) -> list[str]:
        """Build the `docker run` argument list. Only env names are included."""
        cmd = [self.docker_path, "run", "--rm"]
        if tty:
            cmd.append("-t")
        for name in env or {}:
            cmd.extend(["-e", name])
        for bind in binds:
            cmd.extend(["-v", bind])
        cmd.append(image_ref)
        cmd.extend(command)
        return cmd

    async def run(
        self,
        image_ref: str,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
        binds: Sequence[str] = (),
        tty: bool = False,
    ) -> CommandResult:
        cmd = self.build_run_command(image_ref, command, env=env, binds=binds, tty=tty)
        result = await run_command(cmd, timeout=self.timeout, env=env)

        if result.timed_out:
            raise ContainerRuntimeTimeout(
                f"docker run {image_ref} timed out after {self.timeout}s", stderr=result.stderr
            )
        if result.returncode in DOCKER_RUN_FAILURE_CODES:
            raise ContainerRuntimeError(
                f"docker run {image_ref} failed (code {result.returncode}): "
                f"{result.stderr.strip()[:1000]}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result
