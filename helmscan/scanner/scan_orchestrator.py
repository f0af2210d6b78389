"""Orchestrates render, image discovery, and per-image scanning into one report."""

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path

from helmscan.errors import (
    ContainerRuntimeError,
    ContainerRuntimeTimeout,
    ImageScanError,
    RenderError,
    ScannerPullError,
)
from helmscan.extraction.base import ImageExtractor
from helmscan.models.model_report import ImageEntry, Report
from helmscan.models.model_scanner import (
    ImageScanOutcome,
    ScanErrorType,
    ScanRunResult,
    ScanState,
)
from helmscan.models.model_settings import FailurePolicy
from helmscan.runtime.base import Renderer
from helmscan.scanner.chart import get_chart_label
from helmscan.scanner.snyk_scanner import SnykDockerScanner

logger = logging.getLogger(__name__)

ERROR_TYPE_BY_STATE = {
    ScanState.PULLING: ScanErrorType.PULL_FAILED,
    ScanState.RUNNING: ScanErrorType.RUN_FAILED,
    ScanState.PARSING: ScanErrorType.INVALID_OUTPUT,
}


class ScanOrchestrator:
    """Runs the scan pipeline for one chart.

    render -> extract -> chart label -> pull scanner -> pull + scan each image.
    A failure on one image drops it from the report; it never aborts the run.
    """

    def __init__(
        self,
        renderer: Renderer,
        extractor: ImageExtractor,
        scanner: SnykDockerScanner | None = None,
        chart_label_loader: Callable[[Path], str] = get_chart_label,
        failure_policy: FailurePolicy = FailurePolicy.BEST_EFFORT,
        concurrency: int = 1,
    ):
        """Initialize ScanOrchestrator.

        Args:
            renderer: Renders the input directory into manifest text
            extractor: Image extraction strategy
            scanner: Scanner used when scanning is enabled
            chart_label_loader: Resolves the chart identity label of a directory
            failure_policy: Whether render and scanner-pull failures are fatal
            concurrency: Maximum concurrent image scans (default: 1, sequential)
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.renderer = renderer
        self.extractor = extractor
        self.scanner = scanner
        self.chart_label_loader = chart_label_loader
        self.failure_policy = failure_policy
        self.concurrency = concurrency

    @property
    def fail_fast(self) -> bool:
        return self.failure_policy == FailurePolicy.FAIL_FAST

    async def discover_images(self, input_directory: Path) -> list[str]:
        """Render the input directory and extract image references.

        In best-effort mode a failed render is logged and whatever it printed
        is still searched, which usually yields no images.

        Raises:
            RenderError: If rendering fails in fail-fast mode
        """
        result = await self.renderer.render(input_directory)

        if not result.success:
            reason = (
                "timed out" if result.timed_out else f"exited with code {result.returncode}"
            )
            message = f"Rendering {input_directory} {reason}: {result.stderr.strip()[:1000]}"
            if self.fail_fast:
                raise RenderError(message)
            logger.warning(message)

        images = self.extractor.extract(result.stdout)

        logger.info(f"Found {len(images)} images")
        for image_ref in images:
            logger.info(f"  - {image_ref}")
        return images

    async def prepare_scanner(self) -> None:
        """Pull the scanner runtime image once per run.

        Raises:
            ScannerPullError: If the pull fails in fail-fast mode
        """
        try:
            await self.scanner.pull_scanner()
        except ContainerRuntimeError as e:
            if self.fail_fast:
                raise ScannerPullError(str(e)) from e
            logger.warning(f"Could not pull scanner image, continuing: {e}")

    async def scan_image(self, image_ref: str) -> ImageScanOutcome:
        """Pull, scan, and parse one image. Never raises for per-image failures."""
        outcome = ImageScanOutcome(image_ref=image_ref, state=ScanState.PENDING)

        try:
            outcome.state = ScanState.PULLING
            await self.scanner.pull_image(image_ref)

            outcome.state = ScanState.RUNNING
            exit_code, output = await self.scanner.run_scan(image_ref)
            outcome.scanner_exit_code = exit_code

            outcome.state = ScanState.PARSING
            outcome.results = self.scanner.parse_output(image_ref, output)
            outcome.state = ScanState.PARSED

        except ImageScanError as e:
            self._mark_failed(outcome, e)
        except Exception as e:
            # Unexpected errors are still contained to this image
            logger.debug(f"Unexpected error scanning {image_ref}", exc_info=True)
            self._mark_failed(outcome, e)

        return outcome

    def _mark_failed(self, outcome: ImageScanOutcome, error: Exception) -> None:
        if isinstance(error.__cause__, ContainerRuntimeTimeout):
            error_type = ScanErrorType.TIMEOUT
        else:
            error_type = ERROR_TYPE_BY_STATE.get(outcome.state, ScanErrorType.UNKNOWN)

        message = error.message if isinstance(error, ImageScanError) else str(error)
        logger.warning(f"✗ {outcome.image_ref}: {message} (type: {error_type.value})")

        outcome.state = ScanState.FAILED
        outcome.error = message
        outcome.error_type = error_type
        outcome.results = None

    async def scan_images(
        self,
        images: list[str],
        scan_enabled: bool = True,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> list[ImageScanOutcome]:
        """Process every image, returning outcomes in discovery order.

        With concurrency > 1 scans overlap, but each outcome is written to the
        slot of its discovery index, so ordering is unchanged.

        Args:
            images: Image references in discovery order
            scan_enabled: If False, every image gets an empty result, no calls
            progress_callback: Optional callback for progress updates (current, total)

        Returns:
            One outcome per image, same order as images
        """
        total = len(images)

        if not scan_enabled:
            outcomes = []
            for current, image_ref in enumerate(images, 1):
                outcomes.append(
                    ImageScanOutcome(image_ref=image_ref, state=ScanState.SKIPPED, results={})
                )
                if progress_callback:
                    progress_callback(current, total)
            return outcomes

        if self.scanner is None:
            raise ValueError("Scanning is enabled but no scanner was configured")

        slots: list[ImageScanOutcome | None] = [None] * total
        completed = 0

        if self.concurrency == 1:
            for index, image_ref in enumerate(images):
                slots[index] = await self.scan_image(image_ref)
                completed += 1
                if progress_callback:
                    progress_callback(completed, total)
            return slots

        semaphore = asyncio.Semaphore(self.concurrency)

        async def scan_slot(index: int, image_ref: str) -> None:
            nonlocal completed
            async with semaphore:
                slots[index] = await self.scan_image(image_ref)
            completed += 1
            if progress_callback:
                progress_callback(completed, total)

        await asyncio.gather(*[scan_slot(i, ref) for i, ref in enumerate(images)])
        return slots

    @staticmethod
    def build_report(chart_label: str, outcomes: list[ImageScanOutcome]) -> Report:
        """Assemble the report, dropping failed images."""
        entries = [
            ImageEntry(image_name=o.image_ref, results=o.results)
            for o in outcomes
            if o.reportable
        ]
        return Report(chart_label=chart_label, images=entries)

    async def execute(
        self,
        input_directory: Path,
        scan_enabled: bool = True,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> ScanRunResult:
        """Run the full pipeline.

        Raises:
            ChartDescriptorError: If Chart.yaml is unreadable; no image is scanned
            RenderError: On render failure in fail-fast mode
            ScannerPullError: On scanner pull failure in fail-fast mode
        """
        start_time = time.time()
        input_directory = Path(input_directory)

        images = await self.discover_images(input_directory)
        chart_label = self.chart_label_loader(input_directory)

        if scan_enabled:
            if self.scanner is None:
                raise ValueError("Scanning is enabled but no scanner was configured")
            await self.prepare_scanner()

        outcomes = await self.scan_images(images, scan_enabled, progress_callback)
        report = self.build_report(chart_label, outcomes)

        duration = time.time() - start_time
        logger.info(
            f"Scanned {len(images)} images for {chart_label}: "
            f"{len(report.images)} reported, {len(images) - len(report.images)} dropped "
            f"in {duration:.1f}s"
        )
        return ScanRunResult(
            report=report,
            discovered=images,
            outcomes=outcomes,
            duration_seconds=duration,
        )

    async def run(self, input_directory: Path, scan_enabled: bool = True) -> Report:
        """Run the full pipeline and return only the report."""
        result = await self.execute(input_directory, scan_enabled)
        return result.report
