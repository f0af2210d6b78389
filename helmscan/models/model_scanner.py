"""Data models for external calls and per-image scan outcomes."""

from dataclasses import dataclass
from enum import Enum

from pydantic import JsonValue

from helmscan.models.model_report import Report


class ScanState(Enum):
    """Per-image lifecycle.

    PENDING -> PULLING -> RUNNING -> PARSING -> PARSED, or FAILED from any
    of PULLING, RUNNING and PARSING.
    """

    PENDING = "pending"
    PULLING = "pulling"
    RUNNING = "running"
    PARSING = "parsing"
    PARSED = "parsed"
    SKIPPED = "skipped"  # Scanning disabled
    FAILED = "failed"


class ScanErrorType(Enum):
    """Where a per-image scan failed."""

    PULL_FAILED = "pull_failed"
    RUN_FAILED = "run_failed"
    INVALID_OUTPUT = "invalid_output"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


@dataclass
class CommandResult:
    """Result of an external command."""

    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out


@dataclass
class ImageScanOutcome:
    """Outcome of processing a single discovered image."""

    image_ref: str
    state: ScanState
    results: JsonValue = None
    error: str | None = None
    error_type: ScanErrorType | None = None
    scanner_exit_code: int | None = None

    @property
    def reportable(self) -> bool:
        """Failed images are dropped from the report."""
        return self.state in (ScanState.PARSED, ScanState.SKIPPED)


@dataclass
class ScanRunResult:
    """Result of one orchestration run."""

    report: Report
    discovered: list[str]
    outcomes: list[ImageScanOutcome]
    duration_seconds: float

    @property
    def failures(self) -> dict[str, str]:
        """image_ref -> error for every dropped image."""
        return {o.image_ref: o.error or "Unknown error" for o in self.outcomes if not o.reportable}

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.state == ScanState.PARSED)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.state == ScanState.SKIPPED)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.state == ScanState.FAILED)
