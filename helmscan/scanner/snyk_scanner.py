"""Snyk CLI container wrapper for image vulnerability scanning."""

import json
import logging

from pydantic import JsonValue

from helmscan.consts import (
    DOCKER_SOCKET_BIND,
    SNYK_CLI_DOCKER_IMAGE,
    SNYK_EXIT_ERROR,
    SNYK_EXIT_ISSUES_FOUND,
    SNYK_EXIT_NO_ISSUES,
    SNYK_TOKEN_ENV_VAR,
)
from helmscan.errors import (
    ContainerRuntimeError,
    ImagePullError,
    MissingTokenError,
    ScanOutputError,
    ScanRunError,
)
from helmscan.runtime.base import ContainerRuntime

logger = logging.getLogger(__name__)

SNYK_EXIT_MEANINGS = {
    SNYK_EXIT_NO_ISSUES: "no issues found",
    SNYK_EXIT_ISSUES_FOUND: "issues found",
    SNYK_EXIT_ERROR: "scanner error",
}


class SnykDockerScanner:
    """Runs `snyk test --docker <image> --json` inside the Snyk CLI image.

    The host docker socket is bound into every run so the scanner can inspect
    the pulled image. The token travels in the container environment only.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        token: str,
        scanner_image: str = SNYK_CLI_DOCKER_IMAGE,
    ):
        """Initialize SnykDockerScanner.

        Args:
            runtime: Container runtime client
            token: Snyk authentication token
            scanner_image: Image packaging the Snyk CLI (default: "snyk/snyk:docker")

        Raises:
            MissingTokenError: If token is empty
        """
        if not token:
            raise MissingTokenError(f"{SNYK_TOKEN_ENV_VAR} is not set")
        self.runtime = runtime
        self.token = token
        self.scanner_image = scanner_image

    def build_command(self, image_ref: str) -> list[str]:
        return ["snyk", "test", "--docker", image_ref, "--json"]

    async def pull_scanner(self) -> str:
        """Pull the scanner runtime image.

        Raises:
            ContainerRuntimeError: If the pull fails
        """
        logger.info(f"Pulling scanner image {self.scanner_image}")
        return await self.runtime.pull(self.scanner_image)

    async def pull_image(self, image_ref: str) -> str:
        try:
            return await self.runtime.pull(image_ref)
        except ContainerRuntimeError as e:
            raise ImagePullError(image_ref, str(e)) from e

    async def run_scan(self, image_ref: str) -> tuple[int, str]:
        """Run the scanner against an already pulled image.

        Returns:
            Tuple of (scanner exit code, captured stdout)
        """
        try:
            result = await self.runtime.run(
                self.scanner_image,
                self.build_command(image_ref),
                env={SNYK_TOKEN_ENV_VAR: self.token},
                binds=[DOCKER_SOCKET_BIND],
                tty=False,
            )
        except ContainerRuntimeError as e:
            raise ScanRunError(image_ref, str(e)) from e

        meaning = SNYK_EXIT_MEANINGS.get(result.returncode, "unexpected exit code")
        logger.debug(f"Scan of {image_ref} exited with {result.returncode} ({meaning})")
        return result.returncode, result.stdout

    def parse_output(self, image_ref: str, output: str) -> JsonValue:
        """Parse scanner stdout as JSON, passing the payload through unmodified."""
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            snippet = output.strip()[:200] or "<empty>"
            raise ScanOutputError(image_ref, f"scanner output is not JSON ({e}): {snippet}") from e
