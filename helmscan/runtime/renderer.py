"""Helm template rendering via the helm CLI."""

import logging
import shutil
from pathlib import Path

from helmscan.consts import HELM_EXECUTABLE
from helmscan.models.model_scanner import CommandResult
from helmscan.runtime.process import run_command

logger = logging.getLogger(__name__)


class HelmRenderer:
    """Runs `helm template <directory>`."""

    def __init__(self, helm_path: str = HELM_EXECUTABLE, timeout: float | None = None):
        """Initialize HelmRenderer.

        Args:
            helm_path: Path to helm executable (default: "helm")
            timeout: Render timeout in seconds (default: None, no timeout)
        """
        self.helm_path = helm_path
        self.timeout = timeout

    def is_helm_installed(self) -> bool:
        return shutil.which(self.helm_path) is not None

    async def render(self, directory: Path) -> CommandResult:
        result = await run_command(
            [self.helm_path, "template", str(directory)],
            timeout=self.timeout,
        )
        if not result.success:
            logger.debug(f"helm template exited with {result.returncode}: {result.stderr[:1000]}")
        return result
