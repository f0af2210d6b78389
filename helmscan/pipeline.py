"""Pipeline wiring: builds the scan components from ScanSettings and runs them.

Steps of a scan run:
1. Render the chart with `helm template`
2. Extract image references
3. Read the chart label from Chart.yaml
4. Pull the scanner image (when scanning)
5. Pull and scan each image
6. Assemble the report
"""

import asyncio
import logging
from collections.abc import Callable

from helmscan.consts import DOCKER_EXECUTABLE, HELM_EXECUTABLE, SNYK_TOKEN_ENV_VAR
from helmscan.errors import MissingTokenError
from helmscan.extraction import get_extractor
from helmscan.models.model_scanner import ScanRunResult
from helmscan.models.model_settings import ScanSettings
from helmscan.runtime.docker_client import DockerCliRuntime
from helmscan.runtime.renderer import HelmRenderer
from helmscan.scanner.scan_orchestrator import ScanOrchestrator
from helmscan.scanner.snyk_scanner import SnykDockerScanner

logger = logging.getLogger(__name__)


def find_missing_tools(settings: ScanSettings) -> list[str]:
    """Return the external executables a run needs but cannot find on PATH."""
    missing = []
    if not HelmRenderer().is_helm_installed():
        missing.append(HELM_EXECUTABLE)
    if settings.scan_enabled and not DockerCliRuntime().is_docker_installed():
        missing.append(DOCKER_EXECUTABLE)
    return missing


def build_orchestrator(settings: ScanSettings) -> ScanOrchestrator:
    """Create a ScanOrchestrator backed by helm and the docker CLI.

    Raises:
        MissingTokenError: If scanning is enabled and the token is empty
    """
    renderer = HelmRenderer(timeout=settings.timeout)

    scanner = None
    if settings.scan_enabled:
        runtime = DockerCliRuntime(timeout=settings.timeout)
        scanner = SnykDockerScanner(
            runtime=runtime,
            token=settings.token.get_secret_value(),
            scanner_image=settings.scanner_image,
        )

    return ScanOrchestrator(
        renderer=renderer,
        extractor=get_extractor(settings.extractor),
        scanner=scanner,
        failure_policy=settings.failure_policy,
        concurrency=settings.concurrency,
    )


def run_scan_pipeline(
    settings: ScanSettings,
    progress_callback: Callable[[int, int], None] | None = None,
) -> ScanRunResult:
    """Run a complete scan for settings.input_directory.

    Args:
        settings: Run configuration
        progress_callback: Optional callback for progress updates (current, total)

    Returns:
        ScanRunResult holding the report and per-image outcomes

    Raises:
        MissingTokenError: If the token is empty
        HelmScanError: On any fatal error
    """
    if not settings.token.get_secret_value():
        raise MissingTokenError(f"{SNYK_TOKEN_ENV_VAR} environment variable is not set")

    logger.info(f"Starting scan of {settings.input_directory}")
    orchestrator = build_orchestrator(settings)
    return asyncio.run(
        orchestrator.execute(
            settings.input_directory,
            scan_enabled=settings.scan_enabled,
            progress_callback=progress_callback,
        )
    )


def list_chart_images(settings: ScanSettings) -> list[str]:
    """Render and extract images only. Needs neither a token nor Chart.yaml."""
    orchestrator = ScanOrchestrator(
        renderer=HelmRenderer(timeout=settings.timeout),
        extractor=get_extractor(settings.extractor),
        failure_policy=settings.failure_policy,
    )
    return asyncio.run(orchestrator.discover_images(settings.input_directory))
